"""
Record and option types for the SSE deep-parse formatter.

Defines the data structures produced by the event segmenter and the
recursive JSON normalizer, plus the options that tune normalization.

Classes
-------
ParserOptions : Tunables for the recursive JSON normalizer.
NormalizeResult : Outcome of normalizing one ``data`` payload.
EventRecord : One segmented SSE event with its normalized payload.

Functions
---------
events_to_json : Serialize a list of event records as a JSON array.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sse_formatter.parser.recovery import RECOVERIES

DEFAULT_MAX_DEPTH = 200


@dataclass
class ParserOptions:
    """
    Tunables for the recursive JSON normalizer.

    Attributes
    ----------
    max_depth : int
        Ceiling on container nesting plus re-decode levels scanned by the
        deep-parse pass.  Subtrees below the ceiling are kept as decoded
        but not searched for embedded JSON.
    recoveries : tuple of callable
        ``(raw: str) -> str`` rewrites applied to a top-level payload that
        failed the strict decode.  The first rewrite that yields valid
        JSON wins.  An empty tuple disables recovery.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    recoveries: tuple[Callable[[str], str], ...] = RECOVERIES


@dataclass
class NormalizeResult:
    """
    Outcome of normalizing one ``data`` payload.

    Attributes
    ----------
    is_parsed : bool
        The payload decoded as JSON, directly or after a recovery rewrite.
    data : Any
        The deep-parsed value tree, or the untouched payload string when
        *is_parsed* is false.
    parsed_field_paths : list of str
        Paths of every string leaf that was reinterpreted as JSON, in
        pre-order.
    """

    is_parsed: bool
    data: Any
    parsed_field_paths: list[str] = field(default_factory=list)

    @property
    def is_deep_parsed(self) -> bool:
        return bool(self.parsed_field_paths)


@dataclass
class EventRecord:
    """
    One SSE event as segmented from the input text.

    Attributes
    ----------
    fields : dict of str to str
        Every non-``data`` field of the event, in first-seen order.
    raw_data : str or None
        The event's ``data`` value exactly as it appeared, or ``None`` if
        the event carried no data.
    data : Any
        The normalized value tree.  Equals *raw_data* when the payload is
        not JSON; ``None`` when there is no data.
    is_parsed : bool
        *raw_data* decoded as JSON.
    is_deep_parsed : bool
        At least one string inside the decoded tree was itself JSON.
    parsed_field_paths : list of str
        Paths of the reinterpreted strings, relative to *data*.
    """

    fields: dict[str, str] = field(default_factory=dict)
    raw_data: str | None = None
    data: Any = None
    is_parsed: bool = False
    is_deep_parsed: bool = False
    parsed_field_paths: list[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.raw_data is not None

    @property
    def event(self) -> str | None:
        """The ``event`` field, if the event named its type."""
        return self.fields.get("event")

    def to_dict(self) -> dict[str, Any]:
        """
        Flatten the record into its JSON-ready form.

        SSE fields are spread at the top level, followed by ``data`` and
        ``rawData`` (only when the event had data) and the parse flags.
        The flag keys win over an SSE field of the same name.

        Returns
        -------
        dict
            A new dict safe to pass to :func:`json.dumps`.
        """
        result: dict[str, Any] = dict(self.fields)
        if self.has_data:
            result["data"] = self.data
            result["rawData"] = self.raw_data
        result["isParsed"] = self.is_parsed
        result["isDeepParsed"] = self.is_deep_parsed
        result["parsedFieldPaths"] = list(self.parsed_field_paths)
        return result


def events_to_json(events: list[EventRecord], indent: int | None = 2) -> str:
    """
    Serialize event records as a JSON array.

    Parameters
    ----------
    events : list of EventRecord
        Records returned by the segmenter.
    indent : int or None, optional
        Indentation passed to :func:`json.dumps`.

    Returns
    -------
    str
        The JSON text, non-ASCII characters kept as-is.
    """
    return json.dumps(
        [e.to_dict() for e in events], indent=indent, ensure_ascii=False
    )
