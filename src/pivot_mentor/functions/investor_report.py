"""Investor report generation function."""

import logging
from typing import List

from pivot_mentor.functions.function_errors import FunctionError, UpstreamStatusError
from pivot_mentor.functions.gateway_client import GatewayClient
from pivot_mentor.functions.models import PivotRecord
from pivot_mentor.functions.prompts import INVESTOR_REPORT_SYSTEM_PROMPT, format_investor_report_prompt


class InvestorReportFunction:
    """Turns a pivot history into an investor-ready report."""

    RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
    PAYMENT_REQUIRED_MESSAGE = "AI credits depleted. Please add credits to continue."

    def __init__(self, gateway: GatewayClient) -> None:
        self._gateway = gateway
        self._logger = logging.getLogger("InvestorReportFunction")

    async def generate(
        self,
        pivots: List[PivotRecord] | None,
        startup_name: str | None = None,
        current_stage: str | None = None
    ) -> str:
        """
        Generate the report.

        Args:
            pivots: Pivot history
            startup_name: Startup name, if known
            current_stage: Current company stage, if known

        Returns:
            Report text in markdown

        Raises:
            FunctionError: If there are no pivots or the gateway fails
        """
        if not pivots:
            raise FunctionError("No pivot data provided")

        self._logger.info("Generating investor report for %d pivots", len(pivots))

        try:
            report = await self._gateway.complete([
                {"role": "system", "content": INVESTOR_REPORT_SYSTEM_PROMPT},
                {"role": "user", "content": format_investor_report_prompt(pivots, startup_name, current_stage)}
            ])

        except UpstreamStatusError as e:
            if e.upstream_status == 429:
                raise FunctionError(self.RATE_LIMIT_MESSAGE) from e

            if e.upstream_status == 402:
                raise FunctionError(self.PAYMENT_REQUIRED_MESSAGE) from e

            raise FunctionError("Failed to generate report") from e

        self._logger.info("Report generated successfully")
        return report
