"""
Parsing cost calculation.

Dependencies: kb_engine.boundary.db.models
System role: Credit pricing for parsing jobs
"""

from kb_engine.boundary.db.models.parsing_job_model import ParsingMode
from kb_engine.core.exceptions import ValidationError


class ParsingCostCalculator:
    """Credits = per-page rate of the mode times page count."""

    def __init__(self, credits_per_page: dict[str, int]) -> None:
        self._rates = {k.lower(): v for k, v in credits_per_page.items()}

    def parse_mode(self, mode: str | ParsingMode) -> ParsingMode:
        """
        Normalize a mode name.

        Raises:
            ValidationError: When the mode is unknown or has no configured rate
        """
        try:
            parsed = ParsingMode(mode.lower() if isinstance(mode, str) else mode)
        except ValueError as e:
            raise ValidationError(
                f"Invalid parsing mode: {mode}",
                field="mode",
                details={"allowed": [m.value for m in ParsingMode]},
            ) from e
        if parsed.value not in self._rates:
            raise ValidationError(f"No rate configured for mode: {parsed.value}", field="mode")
        return parsed

    def credits_per_page(self, mode: ParsingMode) -> int:
        return self._rates[mode.value]

    def cost(self, mode: ParsingMode, page_count: int) -> int:
        """
        Credits required to parse page_count pages in mode.

        Raises:
            ValidationError: When page_count is not positive
        """
        if page_count <= 0:
            raise ValidationError("Page count must be positive", field="page_count")
        return self._rates[mode.value] * page_count
