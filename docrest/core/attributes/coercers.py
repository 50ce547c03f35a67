from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional

from .schema import LeafTag


class _Missing:
    """Marker for an undefined value (absent key, or non-mapping container)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Missing":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_Missing":
        return self


MISSING: Any = _Missing()


def is_defined(value: Any) -> bool:
    """True for anything but MISSING. `None` is defined (explicit null)."""

    return value is not MISSING


def lookup(container: Any, key: str) -> Any:
    """Return container[key], or MISSING when the container is not a mapping or lacks key."""

    if isinstance(container, Mapping) and key in container:
        return container[key]
    return MISSING


class Coerced(NamedTuple):
    """Outcome of one leaf coercion.

    source is one of "raw", "attrs", "defaults", "zero".
    """

    value: Any
    source: str

    @property
    def fell_back(self) -> bool:
        return self.source != "raw"


def _fallback(attrs_value: Any, defaults_value: Any, zero: Any) -> Coerced:
    if attrs_value is not MISSING:
        return Coerced(attrs_value, "attrs")
    if defaults_value is not MISSING:
        return Coerced(defaults_value, "defaults")
    return Coerced(zero, "zero")


def _reset(defaults_value: Any, zero: Any) -> Coerced:
    # An empty string asks for the declared default; the current value is skipped.
    if defaults_value is not MISSING:
        return Coerced(defaults_value, "defaults")
    return Coerced(zero, "zero")


def _is_empty_string(raw: Any) -> bool:
    return isinstance(raw, str) and raw == ""


def _is_number(raw: Any) -> bool:
    return isinstance(raw, (int, float)) and not isinstance(raw, bool)


_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_int(raw: Any) -> Optional[int]:
    """Interpret raw as an integer the way form and query values are read.

    - ints pass through, finite floats truncate toward zero
    - strings yield their leading integer ("12px" -> 12, " 7 " -> 7)
    - booleans, None, containers, NaN and infinities yield None

    """

    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    if isinstance(raw, str):
        m = _INT_PREFIX.match(raw)
        if m:
            try:
                return int(m.group(1))
            except ValueError:
                # digit count beyond the interpreter's int conversion limit
                return None
    return None


def parse_float(raw: Any) -> Optional[float]:
    """Interpret raw as a finite float ("2.5kg" -> 2.5, "1e3" -> 1000.0)."""

    if isinstance(raw, bool):
        return None
    value: Optional[float] = None
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return None
    elif isinstance(raw, str):
        m = _FLOAT_PREFIX.match(raw)
        if m:
            value = float(m.group(1))
    if value is None or not math.isfinite(value):
        return None
    return value


def is_iso8601(raw: Any) -> bool:
    """True if raw is a string holding an ISO-8601 date or date-time."""

    if not isinstance(raw, str) or not raw.strip():
        return False
    try:
        datetime.fromisoformat(raw.strip())
    except ValueError:
        return False
    return True


def _integer(raw: Any, attrs_value: Any, defaults_value: Any, *, unsigned: bool) -> Coerced:
    if _is_empty_string(raw):
        return _reset(defaults_value, 0)
    n = parse_int(raw)
    if n is None:
        return _fallback(attrs_value, defaults_value, 0)
    if unsigned and n < 0:
        n = 0
    return Coerced(n, "raw")


def _float(raw: Any, attrs_value: Any, defaults_value: Any, *, unsigned: bool) -> Coerced:
    if _is_empty_string(raw):
        return _reset(defaults_value, 0.0)
    f = parse_float(raw)
    if f is None:
        return _fallback(attrs_value, defaults_value, 0.0)
    if unsigned and not f > 0.0:
        f = 0.0
    return Coerced(f, "raw")


def _boolean(raw: Any, attrs_value: Any, defaults_value: Any) -> Coerced:
    if not isinstance(raw, bool):
        return _fallback(attrs_value, defaults_value, False)
    return Coerced(raw, "raw")


def _string(raw: Any, attrs_value: Any, defaults_value: Any) -> Coerced:
    if raw is not None and not isinstance(raw, str):
        return _fallback(attrs_value, defaults_value, None)
    return Coerced(raw, "raw")


def _is_timestamp_number(raw: Any) -> bool:
    # ints of any size are fine; only floats can be NaN or infinite
    if isinstance(raw, float):
        return math.isfinite(raw)
    return _is_number(raw)


def _timestamp(raw: Any, attrs_value: Any, defaults_value: Any) -> Coerced:
    if _is_empty_string(raw):
        return _reset(defaults_value, None)
    # a timestamp can be set explicitly to null
    if raw is not None and not _is_timestamp_number(raw):
        return _fallback(attrs_value, defaults_value, None)
    return Coerced(raw, "raw")


def _date(raw: Any, attrs_value: Any, defaults_value: Any) -> Coerced:
    # a date can be set explicitly to null
    if raw is None or isinstance(raw, (date, datetime)) or is_iso8601(raw):
        return Coerced(raw, "raw")
    return _fallback(attrs_value, defaults_value, None)


def _other(raw: Any, attrs_value: Any, defaults_value: Any) -> Coerced:
    if raw is MISSING:
        return _fallback(attrs_value, defaults_value, None)
    return Coerced(raw, "raw")


COERCERS: Dict[LeafTag, Callable[[Any, Any, Any], Coerced]] = {
    LeafTag.INTEGER: lambda r, a, d: _integer(r, a, d, unsigned=False),
    LeafTag.UINTEGER: lambda r, a, d: _integer(r, a, d, unsigned=True),
    LeafTag.FLOAT: lambda r, a, d: _float(r, a, d, unsigned=False),
    LeafTag.UFLOAT: lambda r, a, d: _float(r, a, d, unsigned=True),
    LeafTag.BOOLEAN: _boolean,
    LeafTag.ID: _string,
    LeafTag.STRING: _string,
    LeafTag.TIMESTAMP: _timestamp,
    LeafTag.DATE: _date,
    LeafTag.OTHER: _other,
}


def coerce_leaf(
    tag: LeafTag | str,
    raw: Any = MISSING,
    attrs_value: Any = MISSING,
    defaults_value: Any = MISSING,
) -> Coerced:
    """Coerce one leaf value and report where the result came from.

    Never raises for data: invalid input resolves through
    raw -> attrs_value -> defaults_value -> zero value.

    """

    leaf_tag = tag if isinstance(tag, LeafTag) else LeafTag.from_literal(str(tag))
    return COERCERS[leaf_tag](raw, attrs_value, defaults_value)


def coerce(
    tag: LeafTag | str,
    raw: Any = MISSING,
    attrs_value: Any = MISSING,
    defaults_value: Any = MISSING,
) -> Any:
    """Coerce one leaf value; see coerce_leaf."""

    return coerce_leaf(tag, raw, attrs_value, defaults_value).value


def coerce_integer(raw: Any, attrs_value: Any = MISSING, defaults_value: Any = MISSING) -> int:
    return _integer(raw, attrs_value, defaults_value, unsigned=False).value


def coerce_uinteger(raw: Any, attrs_value: Any = MISSING, defaults_value: Any = MISSING) -> int:
    return _integer(raw, attrs_value, defaults_value, unsigned=True).value


def coerce_float(raw: Any, attrs_value: Any = MISSING, defaults_value: Any = MISSING) -> float:
    return _float(raw, attrs_value, defaults_value, unsigned=False).value


def coerce_ufloat(raw: Any, attrs_value: Any = MISSING, defaults_value: Any = MISSING) -> float:
    return _float(raw, attrs_value, defaults_value, unsigned=True).value


def coerce_boolean(raw: Any, attrs_value: Any = MISSING, defaults_value: Any = MISSING) -> bool:
    return _boolean(raw, attrs_value, defaults_value).value


def coerce_string(raw: Any, attrs_value: Any = MISSING, defaults_value: Any = MISSING) -> Any:
    return _string(raw, attrs_value, defaults_value).value


coerce_id = coerce_string


def coerce_timestamp(raw: Any, attrs_value: Any = MISSING, defaults_value: Any = MISSING) -> Any:
    return _timestamp(raw, attrs_value, defaults_value).value


def coerce_date(raw: Any, attrs_value: Any = MISSING, defaults_value: Any = MISSING) -> Any:
    return _date(raw, attrs_value, defaults_value).value


def coerce_other(raw: Any, attrs_value: Any = MISSING, defaults_value: Any = MISSING) -> Any:
    return _other(raw, attrs_value, defaults_value).value
