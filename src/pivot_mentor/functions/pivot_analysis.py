"""Pivot history analysis function."""

from typing import List

from pivot_mentor.functions.function_errors import FunctionError, UpstreamStatusError
from pivot_mentor.functions.gateway_client import GatewayClient
from pivot_mentor.functions.models import PivotRecord
from pivot_mentor.functions.prompts import PIVOT_ANALYSIS_SYSTEM_PROMPT, format_pivot_summary


class PivotAnalysisFunction:
    """Asks the gateway for patterns and recommendations across a founder's pivots."""

    def __init__(self, gateway: GatewayClient) -> None:
        self._gateway = gateway

    async def analyze(self, pivots: List[PivotRecord] | None) -> str:
        """
        Analyze a pivot history.

        Args:
            pivots: Pivots in the order they were made

        Returns:
            Insights text

        Raises:
            FunctionError: If there are no pivots or the gateway fails
        """
        if not pivots:
            raise FunctionError("No pivots provided for analysis")

        user_prompt = f"Analyze these pivots from a startup founder's journey:\n\n{format_pivot_summary(pivots)}"

        try:
            return await self._gateway.complete([
                {"role": "system", "content": PIVOT_ANALYSIS_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt}
            ])

        except UpstreamStatusError as e:
            raise FunctionError("Failed to analyze pivots") from e
