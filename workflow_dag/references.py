# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Input reference resolution for node parameters.

Supported forms (top-level string values only):
    $input              first upstream output, JSON text unless already a string
    $input[n]           n-th upstream output, JSON text unless already a string
    $input[n].a.b[0]    value found by walking the n-th output

An out-of-range ``$input[n]`` is left as the literal string. A path that
runs into a missing value resolves to None. Anything else passes through.
"""
import json
import re
from typing import Any, Dict, Sequence

INPUT_PREFIX = "$input"

_INDEX_REF = re.compile(r"^\$input\[(\d+)\]$")
_PATH_REF = re.compile(r"^\$input\[(\d+)\]\.(.+)$")
_SEGMENT = re.compile(r"^([^\[\]]*)\[(\d+)\]$")

_MISSING = object()


def resolve_parameters(params: Dict[str, Any], inputs: Sequence[Any]) -> Dict[str, Any]:
    """Resolve references in the top-level values of a parameter dict."""
    return {key: resolve_value(value, inputs) for key, value in params.items()}


def resolve_value(value: Any, inputs: Sequence[Any]) -> Any:
    """Resolve a single parameter value against upstream outputs."""
    if not isinstance(value, str) or not value.startswith(INPUT_PREFIX):
        return value

    if value == INPUT_PREFIX:
        if not inputs:
            return value
        return _stringify(inputs[0])

    match = _INDEX_REF.match(value)
    if match:
        index = int(match.group(1))
        if index >= len(inputs):
            return value
        return _stringify(inputs[index])

    match = _PATH_REF.match(value)
    if match:
        index = int(match.group(1))
        if index >= len(inputs):
            return None
        return get_path(inputs[index], match.group(2))

    return value


def get_path(obj: Any, path: str) -> Any:
    """
    Walk a dot separated path; each segment may end in one ``[k]`` index.

    Returns None as soon as a step finds nothing.
    """
    current = obj
    for segment in path.split("."):
        key, index = _split_segment(segment)

        if key:
            current = _get_key(current, key)
            if current is _MISSING or current is None:
                return None

        if index is not None:
            current = _get_index(current, index)
            if current is _MISSING or current is None:
                return None

    return current


def _split_segment(segment: str):
    match = _SEGMENT.match(segment)
    if match:
        return match.group(1), int(match.group(2))
    return segment, None


def _get_key(current: Any, key: str) -> Any:
    if isinstance(current, dict):
        return current.get(key, _MISSING)
    if isinstance(current, (list, str)):
        if key == "length":
            return len(current)
        if key.isdigit():
            return _get_index(current, int(key))
    return _MISSING


def _get_index(current: Any, index: int) -> Any:
    if isinstance(current, (list, str)) and index < len(current):
        return current[index]
    return _MISSING


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
