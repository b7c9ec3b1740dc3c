from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_number(
    value,
    field_name: str,
    *,
    minimum: float = 0,
    inclusive: bool = False,
    maximum: Optional[float] = None,
) -> float:
    """Coerce a request value to a number and enforce its bounds (`maximum` is inclusive)."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number != number or number in (float("inf"), float("-inf")):
        raise ValidationError(f"{field_name} must be a finite number")

    if inclusive and number < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum:g}")
    if not inclusive and number <= minimum:
        raise ValidationError(f"{field_name} must be greater than {minimum:g}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field_name} must be at most {maximum:g}")
    return number
