"""
SSE (Server-Sent Events) event segmenter.

Splits a complete, already-buffered SSE text blob into event records
and normalizes each event's ``data`` payload with the recursive JSON
normalizer.  Framing is handled permissively: lines without a colon are
skipped, stray blank lines are ignored, and a final event without a
terminating blank line is still emitted.

Functions
---------
split_field : Split one SSE line into a field name and value.
parse_sse_events : Parse an SSE text blob into event records.
parse : Parse an SSE text blob with default options.
"""

from __future__ import annotations

from sse_formatter.parser.normalize import normalize_data
from sse_formatter.parser.types import EventRecord, ParserOptions


def split_field(line: str) -> tuple[str, str] | None:
    """
    Split one SSE line at its first colon.

    Parameters
    ----------
    line : str
        A single line of SSE text.

    Returns
    -------
    tuple of (str, str) or None
        The trimmed field name and trimmed value, or ``None`` if the line
        has no colon.
    """
    name, sep, value = line.partition(":")
    if not sep:
        return None
    return name.strip(), value.strip()


def _finalize(
    fields: dict[str, str], data: str | None, options: ParserOptions
) -> EventRecord:
    record = EventRecord(fields=fields)
    if data:
        result = normalize_data(data, options)
        record.raw_data = data
        record.data = result.data
        record.is_parsed = result.is_parsed
        record.is_deep_parsed = result.is_deep_parsed
        record.parsed_field_paths = result.parsed_field_paths
    return record


def parse_sse_events(
    raw: str, options: ParserOptions | None = None
) -> list[EventRecord]:
    """
    Parse an SSE text blob into a list of event records.

    Lines are split on ``\\n`` and trimmed, so ``\\r\\n`` input works
    unchanged.  A blank line ends the current event.  Within an event,
    the last ``data:`` line wins (lines are not concatenated) and any
    other field overwrites an earlier value of the same name.  An empty
    ``data:`` value leaves the event without data.

    Parameters
    ----------
    raw : str
        The full SSE text.
    options : ParserOptions, optional
        Options forwarded to the JSON normalizer.

    Returns
    -------
    list of EventRecord
        One record per event, in input order.  Never raises for any
        string input.
    """
    options = options or ParserOptions()
    events: list[EventRecord] = []
    fields: dict[str, str] = {}
    data: str | None = None

    for line in raw.split("\n"):
        line = line.strip()
        if not line:
            if fields or data:
                events.append(_finalize(fields, data, options))
                fields = {}
                data = None
            continue

        parts = split_field(line)
        if parts is None:
            continue
        name, value = parts
        if name == "data":
            data = value
        else:
            fields[name] = value

    if fields or data:
        events.append(_finalize(fields, data, options))
    return events


def parse(text: str) -> list[EventRecord]:
    """Parse *text* with default :class:`ParserOptions`."""
    return parse_sse_events(text)
