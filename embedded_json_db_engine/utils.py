from __future__ import annotations
import copy
import json
import math
from typing import Any

_JSON_SCALARS = (str, int, float, bool, type(None))


def canonical_json(obj: Any) -> str:
    # Stable text form used for value identity (sorted keys, compact separators)
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def value_text(v: Any) -> str:
    """
    Text form of a field value as seen by comparisons and search.
    Booleans and null follow JSON spelling; integral floats drop the '.0'.
    """
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float) and math.isfinite(v) and v.is_integer():
        return str(int(v))
    if isinstance(v, (int, float, str)):
        return str(v)
    return canonical_json(v)


def is_json_value(v: Any) -> bool:
    if isinstance(v, _JSON_SCALARS):
        return True
    if isinstance(v, list):
        return all(is_json_value(x) for x in v)
    if isinstance(v, dict):
        return all(isinstance(k, str) and is_json_value(x) for k, x in v.items())
    return False


def deep_copy(obj: Any) -> Any:
    return copy.deepcopy(obj)
