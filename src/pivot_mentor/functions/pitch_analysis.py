"""Pitch feedback function."""

from pivot_mentor.functions.function_errors import FunctionError, UpstreamStatusError
from pivot_mentor.functions.gateway_client import GatewayClient
from pivot_mentor.functions.prompts import PITCH_SYSTEM_PROMPT


class PitchAnalysisFunction:
    """Asks the gateway to coach a founder on their pitch."""

    def __init__(self, gateway: GatewayClient) -> None:
        self._gateway = gateway

    async def analyze(self, pitch: str | None) -> str:
        """
        Get feedback on a pitch.

        Args:
            pitch: The pitch text

        Returns:
            Feedback text

        Raises:
            FunctionError: If the pitch is blank or the gateway fails
        """
        if not pitch or not pitch.strip():
            raise FunctionError("No pitch provided")

        try:
            return await self._gateway.complete([
                {"role": "system", "content": PITCH_SYSTEM_PROMPT},
                {"role": "user", "content": pitch}
            ])

        except UpstreamStatusError as e:
            raise FunctionError("Failed to analyze pitch") from e
