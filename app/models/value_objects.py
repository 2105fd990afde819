import math
import re
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.core.exceptions import ValidationError

_LEADING_INT = re.compile(r"^\s*(\d+)")
_PRICE_NOISE = re.compile(r"[^0-9.]")


class Duration(BaseModel):
    """Treatment length in whole minutes, parsed from labels like "60min"."""
    model_config = ConfigDict(frozen=True)

    minutes: int

    @classmethod
    def parse(cls, label: Any) -> "Duration":
        if isinstance(label, bool):
            raise ValidationError(f"Invalid duration: {label!r}")
        if isinstance(label, int):
            text = str(label)
        elif isinstance(label, str):
            text = label
        else:
            raise ValidationError(f"Invalid duration: {label!r}")

        match = _LEADING_INT.match(text)
        if not match:
            raise ValidationError(f"Invalid duration: {label!r}")
        minutes = int(match.group(1))
        if minutes <= 0:
            raise ValidationError(f"Duration must be positive: {label!r}")
        return cls(minutes=minutes)


class Price(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float

    @classmethod
    def parse(cls, raw: Any) -> "Price":
        """
        Strips everything except digits and dots ("$45.50" -> 45.5).
        Raises ValidationError if what is left is not a finite number.
        """
        cleaned = _PRICE_NOISE.sub("", str(raw))
        try:
            amount = float(cleaned)
        except ValueError:
            raise ValidationError(f"Invalid price: {raw!r}")
        if not math.isfinite(amount) or amount < 0:
            raise ValidationError(f"Invalid price: {raw!r}")
        return cls(amount=amount)
