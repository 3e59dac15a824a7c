"""
Scale naming - labels for positions along a generated scale.

T-shirt scale (default label "Medium", prefix "X"):

    -3       -2        -1      0        1       2         3
    XX-Small X-Small   Small   Medium   Large   X-Large   XX-Large

Numeric scale (default 100, increasing step 100, decreasing step 25):

    -2   -1   0    1    2
    50   75   100  200  300
"""

from __future__ import annotations

import math
import re

from chuk_mcp_tokens.constants import DEFAULT_NUMERIC_BASE, ScaleType
from chuk_mcp_tokens.models.algorithm import LogicalMapping

# Leading decimal number, so "16px" reads as 16
_LEADING_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def tshirt_name(n: int, default_label: str, extra_prefix: str = "X") -> str:
    """T-shirt label for scale position n."""
    if n == 0:
        return default_label
    base = "Large" if n > 0 else "Small"
    k = abs(n)
    if k == 1:
        return base
    return f"{extra_prefix * (k - 1)}-{base}"


def numeric_name(
    n: int,
    default_label: str,
    increasing_step: float,
    decreasing_step: float,
) -> str:
    """Numeric label for scale position n."""
    if n == 0:
        return default_label
    base = _parse_base(default_label)
    step = increasing_step if n > 0 else decreasing_step
    return _format_number(base + n * step)


def _parse_base(label: str) -> float:
    """Leading number of the default label; 100 when there is none or it is not finite."""
    match = _LEADING_NUMBER.match(label)
    if match is None:
        return DEFAULT_NUMERIC_BASE
    value = float(match.group())
    return value if math.isfinite(value) else DEFAULT_NUMERIC_BASE


def _format_number(value: float) -> str:
    if not math.isfinite(value):
        return repr(value)
    if value == int(value):
        return str(int(value))
    return repr(value)


def scale_name(n: int, mapping: LogicalMapping) -> str:
    """Label for iteration value n under a logical mapping."""
    if mapping.scale_type == ScaleType.TSHIRT:
        return tshirt_name(n, mapping.default_value, mapping.extra_prefix)
    return numeric_name(n, mapping.default_value, mapping.increasing_step, mapping.decreasing_step)


def scale_names(values: list[int], mapping: LogicalMapping) -> dict[int, str]:
    """Labels for every iteration value."""
    return {n: scale_name(n, mapping) for n in values}
