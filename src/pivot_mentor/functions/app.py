"""FastAPI application serving the Pivot Mentor functions."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from pivot_mentor.functions.calendar_event import CalendarEventFunction, GoogleCalendarClient
from pivot_mentor.functions.function_errors import FunctionError
from pivot_mentor.functions.gateway_client import GatewayClient
from pivot_mentor.functions.investor_report import InvestorReportFunction
from pivot_mentor.functions.mentor_chat import MentorChatFunction
from pivot_mentor.functions.models import (
    CalendarEventRequest,
    InvestorReportRequest,
    MentorChatRequest,
    PitchRequest,
    PivotAnalysisRequest,
    TranscriptionRequest,
)
from pivot_mentor.functions.pitch_analysis import PitchAnalysisFunction
from pivot_mentor.functions.pivot_analysis import PivotAnalysisFunction
from pivot_mentor.functions.transcription import AssemblyAIClient, TranscriptionFunction
from pivot_mentor.user.user_settings import UserSettings


LOGGER = logging.getLogger("pivot_mentor.functions")

FUNCTIONS_PREFIX = "/functions/v1"
CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def create_app(
    settings: UserSettings,
    gateway: GatewayClient | None = None,
    assemblyai: AssemblyAIClient | None = None,
    calendar: GoogleCalendarClient | None = None,
    transcription_poll_interval: float = 1.0,
) -> FastAPI:
    """
    Create the FastAPI app.

    Args:
        settings: User settings holding upstream keys and URLs
        gateway: AI gateway client (built from settings if not given)
        assemblyai: AssemblyAI client (built from settings if not given)
        calendar: Google Calendar client (default endpoint if not given)
        transcription_poll_interval: Seconds between transcript status checks

    Returns:
        The configured application
    """
    if gateway is None:
        gateway = GatewayClient(settings.ai_backends["gateway"], settings.gateway_model)

    if assemblyai is None:
        assemblyai = AssemblyAIClient(settings.ai_backends["assemblyai"])

    if calendar is None:
        calendar = GoogleCalendarClient()

    mentor_chat = MentorChatFunction(gateway)
    pitch_analysis = PitchAnalysisFunction(gateway)
    pivot_analysis = PivotAnalysisFunction(gateway)
    investor_report = InvestorReportFunction(gateway)
    transcription = TranscriptionFunction(assemblyai, poll_interval=transcription_poll_interval)
    calendar_event = CalendarEventFunction(calendar)

    app = FastAPI(title="Pivot Mentor Functions")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=CORS_HEADERS,
    )

    @app.exception_handler(FunctionError)
    async def function_error_handler(request: Request, exc: FunctionError) -> JSONResponse:
        LOGGER.error("Error in %s: %s", request.url.path, exc.message)
        return JSONResponse({"error": exc.message}, status_code=exc.status)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        LOGGER.warning("Invalid request to %s: %s", request.url.path, exc.errors())
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unexpected error in %s", request.url.path)
        return JSONResponse({"error": str(exc) or "Unknown error"}, status_code=500)

    router = APIRouter(prefix=FUNCTIONS_PREFIX)

    @router.post("/mentor-chat")
    async def mentor_chat_route(chat_request: MentorChatRequest) -> StreamingResponse:
        messages = [message.model_dump() for message in chat_request.messages]
        body = await mentor_chat.stream(messages)
        # Release the upstream connection even if the body is never iterated
        cleanup = BackgroundTasks()
        cleanup.add_task(body.aclose)
        return StreamingResponse(body, media_type="text/event-stream", background=cleanup)

    @router.post("/analyze-pitch")
    async def analyze_pitch_route(pitch_request: PitchRequest) -> Dict[str, Any]:
        return {"feedback": await pitch_analysis.analyze(pitch_request.pitch)}

    @router.post("/analyze-pivots")
    async def analyze_pivots_route(pivot_request: PivotAnalysisRequest) -> Dict[str, Any]:
        return {"insights": await pivot_analysis.analyze(pivot_request.pivots)}

    @router.post("/generate-investor-report")
    async def investor_report_route(report_request: InvestorReportRequest) -> Dict[str, Any]:
        report = await investor_report.generate(
            report_request.pivots,
            report_request.startup_name,
            report_request.current_stage
        )
        return {"report": report}

    @router.post("/transcribe-audio")
    async def transcribe_audio_route(transcription_request: TranscriptionRequest) -> Dict[str, Any]:
        return {"text": await transcription.transcribe(transcription_request.audio)}

    @router.post("/create-calendar-event")
    async def create_calendar_event_route(event_request: CalendarEventRequest) -> Dict[str, Any]:
        return await calendar_event.create(event_request)

    app.include_router(router)

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {
            "status": "ok",
            "gateway_model": gateway.model
        }

    return app
