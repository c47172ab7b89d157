"""
Recursive JSON normalizer for SSE ``data`` payloads.

Decodes a payload as JSON, then walks the decoded tree and reinterprets
every string leaf that is itself JSON-encoded structured data.  Doubly
and triply encoded strings are unwound completely.  The path of every
reinterpreted leaf is recorded so callers can tell which parts of the
tree were recovered from strings.

Path grammar: ``.key`` for a mapping member, ``[index]`` for a sequence
element, no leading ``.`` at the root.  The root itself is ``""``.

Functions
---------
decode_json : Strict JSON decode that reports failure instead of raising.
join_key : Extend a path with a mapping key.
join_index : Extend a path with a sequence index.
deep_parse : Reinterpret embedded JSON strings throughout a decoded value.
normalize_data : Decode and deep-parse one raw ``data`` payload.
"""

from __future__ import annotations

import json
from typing import Any

from sse_formatter.parser.types import NormalizeResult, ParserOptions

NOT_JSON = object()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def decode_json(text: str) -> Any:
    """
    Decode *text* as strict JSON.

    ``NaN`` and ``Infinity`` literals are rejected, as is anything too
    deeply nested for the decoder.

    Parameters
    ----------
    text : str
        Candidate JSON text.

    Returns
    -------
    Any
        The decoded value, or the sentinel ``NOT_JSON`` when
        *text* is not JSON.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return NOT_JSON


def join_key(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def join_index(path: str, index: int) -> str:
    return f"{path}[{index}]"


def _is_container(value: Any) -> bool:
    return isinstance(value, (dict, list))


def _unwrap_string(text: str, max_levels: int) -> Any:
    """
    Decode *text* until a container appears.

    A string that decodes to another string is decoded again, up to
    *max_levels* times.  Returns the container, or ``NOT_JSON`` when
    the chain ends in a scalar, in invalid JSON, or at the level limit.
    """
    current: Any = text
    for _ in range(max_levels):
        current = decode_json(current)
        if _is_container(current):
            return current
        if not isinstance(current, str):
            return NOT_JSON
    return NOT_JSON


def _walk(
    value: Any, path: str, depth: int, options: ParserOptions, paths: list[str]
) -> Any:
    if depth >= options.max_depth:
        return value

    if isinstance(value, str):
        decoded = _unwrap_string(value, options.max_depth - depth)
        if decoded is NOT_JSON:
            return value
        paths.append(path)
        return _walk(decoded, path, depth + 1, options, paths)

    if isinstance(value, list):
        return [
            _walk(item, join_index(path, i), depth + 1, options, paths)
            for i, item in enumerate(value)
        ]

    if isinstance(value, dict):
        return {
            k: _walk(v, join_key(path, k), depth + 1, options, paths)
            for k, v in value.items()
        }

    # null, bool, number
    return value


def deep_parse(
    value: Any, options: ParserOptions | None = None
) -> tuple[Any, list[str]]:
    """
    Reinterpret embedded JSON strings throughout a decoded value.

    String leaves that decode to a mapping or sequence (possibly through
    several layers of string encoding) are replaced by the decoded
    structure, which is scanned in turn.  Strings that decode only to a
    scalar, such as ``"42"`` or ``"true"``, are left untouched.  The
    input is never mutated; containers in the result are new objects.

    Parameters
    ----------
    value : Any
        A value produced by :func:`json.loads`.
    options : ParserOptions, optional
        Supplies the depth ceiling.  Defaults to ``ParserOptions()``.

    Returns
    -------
    tuple of (Any, list of str)
        The normalized tree and the paths of reinterpreted leaves in
        pre-order, depth-first, key/index-ascending order.
    """
    options = options or ParserOptions()
    paths: list[str] = []
    result = _walk(value, "", 0, options, paths)
    return result, paths


def normalize_data(raw: str, options: ParserOptions | None = None) -> NormalizeResult:
    """
    Decode and deep-parse one raw ``data`` payload.

    The payload is first decoded as-is.  If that fails, each recovery
    rewrite in ``options.recoveries`` is applied to the original payload
    and the result decoded, until one succeeds.  A payload that never
    decodes is returned unchanged with ``is_parsed`` false.

    Parameters
    ----------
    raw : str
        The ``data`` field value.
    options : ParserOptions, optional
        Depth ceiling and recovery rewrites.

    Returns
    -------
    NormalizeResult
        Parse flags, normalized data and reinterpreted paths.
    """
    options = options or ParserOptions()

    decoded = decode_json(raw)
    for recover in options.recoveries:
        if decoded is not NOT_JSON:
            break
        decoded = decode_json(recover(raw))

    if decoded is NOT_JSON:
        return NormalizeResult(is_parsed=False, data=raw)

    data, paths = deep_parse(decoded, options)
    return NormalizeResult(is_parsed=True, data=data, parsed_field_paths=paths)
