from __future__ import annotations

import json
import math
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping

from docrest.core.attributes import MISSING


def to_jsonable(obj: Any) -> Any:
    """
    Convert an attribute tree into JSON-serializable data for a wire response.

    - date / datetime leaves become ISO 8601 strings
    - MISSING and non-finite floats become null
    - tuples and sets become lists; mapping keys become strings

    """
    if obj is MISSING:
        return None
    if obj is None or isinstance(obj, (str, bool, int)):
        return obj
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None

    # keep timezone info if present
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, Enum):
        return to_jsonable(obj.value)

    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))

    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(x) for x in obj]

    # fallback: string representation
    return str(obj)


def dumps(obj: Any, *, indent: int | None = 2) -> str:
    """Serialize an attribute tree; key order follows the schema."""

    return json.dumps(to_jsonable(obj), indent=indent, ensure_ascii=False)
