"""
Stateful text fields that keep display strings and numeric values in sync.
"""

import math

from ..shared.constants import (
    DEFAULT_USD,
    MAX_USD,
    MIN_USD,
    PLATFORM_FEE_MAX,
    PLATFORM_FEE_MIN,
)
from .calculations import clamp
from .formatting import format_usd_grouping, to_number_safe
from .sanitizers import (
    sanitize_percentage_input,
    sanitize_rate_offered_input,
    sanitize_usd_display,
)
from .validators import get_error_message


class UsdAmountField:
    """USD amount entry bounded to [MIN_USD, MAX_USD] on blur."""

    def __init__(self, initial: int = DEFAULT_USD) -> None:
        self.numeric: int = initial
        self.display: str = format_usd_grouping(initial)
        self.error: str | None = None
        # Last typed amount before capping, so blur can report overflow.
        self._entered: int = initial

    def on_change(self, raw: str) -> int:
        """Apply a keystroke; amounts above the maximum are capped at once."""
        sanitized = sanitize_usd_display(raw)
        self._entered = sanitized.numeric
        if sanitized.numeric > MAX_USD:
            self.numeric = MAX_USD
            self.display = format_usd_grouping(MAX_USD)
        else:
            self.numeric = sanitized.numeric
            self.display = sanitized.display
        self.error = None
        return self.numeric

    def on_blur(self) -> int:
        """Clamp the committed value and set the inline message."""
        entered = self._entered
        if entered == 0 and self.display == "":
            entered = DEFAULT_USD

        self.error = get_error_message("amount", entered)
        value = int(clamp(entered, MIN_USD, MAX_USD))

        self.numeric = value
        self._entered = value
        self.display = format_usd_grouping(value)
        return value


class RateField:
    """Competitor rate entry kept as sanitized text."""

    def __init__(self, initial: str = "") -> None:
        self.text: str = sanitize_rate_offered_input(initial)
        self.error: str | None = None

    @property
    def value(self) -> float:
        return to_number_safe(self.text)

    def on_change(self, raw: str) -> str:
        self.text = sanitize_rate_offered_input(raw)
        self.error = None
        return self.text

    def on_blur(self) -> str | None:
        self.error = get_error_message("rate", self.text)
        return self.error


class PercentageField:
    """Platform fee percentage entry, clamped to its limits on blur."""

    def __init__(self, initial: str = "0") -> None:
        self.text: str = sanitize_percentage_input(initial)

    @property
    def value(self) -> float:
        return to_number_safe(self.text)

    def on_change(self, raw: str) -> str:
        self.text = sanitize_percentage_input(raw)
        return self.text

    def on_blur(self) -> str:
        number = self.value
        if math.isnan(number) or number < PLATFORM_FEE_MIN:
            self.text = f"{PLATFORM_FEE_MIN:g}"
        elif number > PLATFORM_FEE_MAX:
            self.text = f"{PLATFORM_FEE_MAX:g}"
        return self.text
