# fml/core/values.py
"""
Placeholder value handling: dotted-path lookup into the render context and
conversion of the located value to text.
"""
import json
from typing import Any, Mapping, Sequence

from fml.exceptions import UndefinedVariableError

_MISSING = object()

def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(segment, _MISSING)
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if segment.isascii() and segment.isdigit():
            index = int(segment)
            if index < len(current):
                return current[index]
    return _MISSING

def resolve_path(path: str, context: Mapping[str, Any]) -> Any:
    """Walks `context` along the dot-separated `path`.

    Object segments are looked up by key; a segment made only of ASCII digits
    indexes into a list. Raises UndefinedVariableError for a missing key, an
    out-of-range index, or any attempt to descend into a scalar.
    """
    current: Any = context
    for segment in path.split("."):
        current = _step(current, segment.strip())
        if current is _MISSING:
            raise UndefinedVariableError(path)
    return current

def format_value(value: Any) -> str:
    # None renders as an empty string; containers render as 2-space indented JSON.
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, indent=2, ensure_ascii=False, default=_reject)
    raise TypeError(f"cannot format value of type {type(value).__name__}")

def _reject(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        return dict(obj)
    raise TypeError(f"cannot format value of type {type(obj).__name__}")
