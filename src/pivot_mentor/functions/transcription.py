"""Audio transcription through AssemblyAI."""

import asyncio
import base64
import binascii
import logging
from typing import Any, Dict

from ai.ai_backend_settings import AIBackendSettings
from pivot_mentor.functions.function_errors import ConfigurationError, FunctionError
from pivot_mentor.functions.service_client import ServiceClient


class AssemblyAIClient(ServiceClient):
    """Uploads audio and manages transcripts with the AssemblyAI v2 API."""

    DEFAULT_URL = "https://api.assemblyai.com/v2"
    API_KEY_NAME = "ASSEMBLYAI_API_KEY"

    def __init__(self, settings: AIBackendSettings) -> None:
        super().__init__()
        self._api_key = settings.api_key
        self._base_url = (settings.url or self.DEFAULT_URL).rstrip("/")

    def _headers(self, content_type: str) -> Dict[str, str]:
        if not self._api_key:
            raise ConfigurationError(self.API_KEY_NAME)

        return {
            "authorization": self._api_key,
            "Content-Type": content_type
        }

    async def _call(self, method: str, path: str, failure_message: str, **kwargs: Any) -> Dict[str, Any]:
        async with self._create_session() as session:
            async with session.request(method, f"{self._base_url}{path}", **kwargs) as response:
                if not 200 <= response.status < 300:
                    error_text = await response.text()
                    self._logger.error("%s: %d %s", failure_message, response.status, error_text)
                    raise FunctionError(failure_message)

                return await response.json(content_type=None)

    async def upload(self, audio: bytes) -> str:
        """
        Upload raw audio.

        Args:
            audio: Audio file contents

        Returns:
            URL of the uploaded audio
        """
        result = await self._call(
            "POST",
            "/upload",
            "Failed to upload audio",
            headers=self._headers("application/octet-stream"),
            data=audio
        )
        return result["upload_url"]

    async def request_transcript(self, audio_url: str, language_code: str = "en") -> str:
        """
        Ask for an uploaded file to be transcribed.

        Args:
            audio_url: URL returned by `upload()`
            language_code: Spoken language

        Returns:
            Transcript ID
        """
        result = await self._call(
            "POST",
            "/transcript",
            "Failed to request transcription",
            headers=self._headers("application/json"),
            json={"audio_url": audio_url, "language_code": language_code}
        )
        return result["id"]

    async def get_transcript(self, transcript_id: str) -> Dict[str, Any]:
        """
        Fetch the current state of a transcript.

        Args:
            transcript_id: ID returned by `request_transcript()`

        Returns:
            Transcript record including `status` and, once completed, `text`
        """
        return await self._call(
            "GET",
            f"/transcript/{transcript_id}",
            "Failed to check transcription status",
            headers=self._headers("application/json")
        )


class TranscriptionFunction:
    """Transcribes base64 encoded audio, waiting for the result."""

    def __init__(self, client: AssemblyAIClient, poll_interval: float = 1.0, max_attempts: int = 60) -> None:
        """
        Initialize the transcription function.

        Args:
            client: AssemblyAI client
            poll_interval: Seconds to wait between status checks
            max_attempts: Status checks before giving up
        """
        self._client = client
        self._poll_interval = poll_interval
        self._max_attempts = max_attempts
        self._logger = logging.getLogger("TranscriptionFunction")

    async def transcribe(self, audio: str | None) -> str:
        """
        Transcribe audio.

        Args:
            audio: Base64 encoded audio

        Returns:
            Transcript text

        Raises:
            FunctionError: If the audio is missing or invalid, transcription fails, or it times out
        """
        if not audio:
            raise FunctionError("No audio data provided")

        try:
            binary_audio = base64.b64decode(audio)

        except (binascii.Error, ValueError) as e:
            raise FunctionError("Invalid audio data") from e

        self._logger.info("Audio processed, size: %d bytes", len(binary_audio))

        audio_url = await self._client.upload(binary_audio)
        self._logger.info("Audio uploaded successfully: %s", audio_url)

        transcript_id = await self._client.request_transcript(audio_url)
        self._logger.info("Transcription requested, ID: %s", transcript_id)

        for _ in range(self._max_attempts):
            transcript = await self._client.get_transcript(transcript_id)
            status = transcript.get("status")
            self._logger.debug("Transcription status: %s", status)

            if status == "completed":
                self._logger.info("Transcription completed successfully")
                return transcript.get("text") or ""

            if status == "error":
                self._logger.error("Transcription error: %s", transcript.get("error"))
                raise FunctionError(transcript.get("error") or "Transcription failed")

            await asyncio.sleep(self._poll_interval)

        raise FunctionError("Transcription timeout")
