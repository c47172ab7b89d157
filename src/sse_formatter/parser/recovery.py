"""
Recovery rewrites for ``data`` payloads that fail a strict JSON decode.

Each rewrite takes the raw payload and returns a candidate that may
decode where the original did not.  The normalizer only tries them
after the payload itself has failed to decode, in the order listed in
``RECOVERIES``.

Functions
---------
unescape_quotes : Undo one level of quote escaping.
"""

from __future__ import annotations

from collections.abc import Callable


def unescape_quotes(raw: str) -> str:
    """
    Replace every backslash-quote pair with a bare quote.

    Turns a payload such as ``{\\"a\\": 1}``, copied out of an encoded
    string, back into ``{"a": 1}``.  Backslashes that escape quotes
    inside string values are removed too, so a payload that already
    decodes must never be passed through this rewrite.
    """
    return raw.replace('\\"', '"')


RECOVERIES: tuple[Callable[[str], str], ...] = (unescape_quotes,)
