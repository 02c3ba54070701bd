"""Request models for the serverless functions."""

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """Chat message model."""

    role: str
    content: str


class MentorChatRequest(BaseModel):
    """Body of a mentor-chat request."""

    messages: list[ChatMessage] = Field(default_factory=list)


class PitchRequest(BaseModel):
    """Body of an analyze-pitch request."""

    pitch: str | None = None


class PivotRecord(BaseModel):
    """A pivot as stored by the pivot tracker."""

    model_config = ConfigDict(extra="allow")

    title: str = ""
    pivot_date: str = ""
    description: str = ""
    decision_made: str = ""
    reasoning: str | None = None
    outcome: str | None = None
    lessons_learned: str | None = None


class PivotAnalysisRequest(BaseModel):
    """Body of an analyze-pivots request."""

    pivots: list[PivotRecord] | None = None


class InvestorReportRequest(BaseModel):
    """Body of a generate-investor-report request."""

    model_config = ConfigDict(populate_by_name=True)

    pivots: list[PivotRecord] | None = None
    startup_name: str | None = Field(default=None, alias="startupName")
    current_stage: str | None = Field(default=None, alias="currentStage")


class TranscriptionRequest(BaseModel):
    """Body of a transcribe-audio request; `audio` is base64 encoded."""

    audio: str | None = None


class CalendarEventRequest(BaseModel):
    """Body of a create-calendar-event request."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str = ""
    description: str = ""
    start_time: str = Field(default="", alias="startTime")
    end_time: str = Field(default="", alias="endTime")
    attendees: list[str] = Field(default_factory=list)
    access_token: str | None = Field(default=None, alias="accessToken")
    calendar_id: str = Field(default="primary", alias="calendarId")
