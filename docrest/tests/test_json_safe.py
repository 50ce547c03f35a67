import json
from datetime import date, datetime, timezone

from docrest.core.attributes import MISSING, LeafTag
from docrest.utils.json_safe import dumps, to_jsonable


def test_to_jsonable_handles_attribute_leaves():
    out = to_jsonable(
        {
            "when": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            "day": date(2024, 1, 2),
            "nan": float("nan"),
            "missing": MISSING,
            "tag": LeafTag.UFLOAT,
            "pair": (1, 2),
            1: "int key",
        }
    )
    assert out == {
        "when": "2024-01-02T03:04:05+00:00",
        "day": "2024-01-02",
        "nan": None,
        "missing": None,
        "tag": "ufloat",
        "pair": [1, 2],
        "1": "int key",
    }


def test_dumps_keeps_key_order_and_unicode():
    text = dumps({"b": "ø", "a": 1}, indent=None)
    assert text == '{"b": "ø", "a": 1}'
    assert json.loads(dumps({"x": [1.5, None]})) == {"x": [1.5, None]}
