"""
Markdown renderer for parsed SSE events.

Renders event records the way a reader wants to inspect a stream: each
event gets its type, a label describing how far its payload was decoded,
the list of fields that were recovered from embedded JSON strings, the
payload itself, and any remaining SSE fields.

Functions
---------
data_label : Describe how an event's payload was decoded.
format_event : Render one event record as Markdown.
format_events : Render a list of event records as a Markdown document.
"""

from __future__ import annotations

import json
from collections import Counter

from sse_formatter.parser.types import EventRecord

LABEL_RAW = "Raw Data (parsing failed)"
LABEL_PARSED = "Parsed JSON"
LABEL_DEEP = "Deeply Parsed JSON"


def data_label(event: EventRecord) -> str:
    if not event.is_parsed:
        return LABEL_RAW
    if event.is_deep_parsed:
        return LABEL_DEEP
    return LABEL_PARSED


def format_event(event: EventRecord, index: int) -> str:
    """
    Render one event record as Markdown.

    Parameters
    ----------
    event : EventRecord
        The record to render.
    index : int
        1-based position of the event in the stream, used in the heading.

    Returns
    -------
    str
        Markdown text for the event.
    """
    lines: list[str] = []
    heading = f"### Event {index}"
    if event.event:
        heading += f": `{event.event}`"
    lines.append(heading)
    lines.append("")

    if event.has_data:
        lines.append(f"*{data_label(event)}*")
        lines.append("")

        if event.parsed_field_paths:
            badges = ", ".join(f"`{p or '(root)'}`" for p in event.parsed_field_paths)
            lines.append(f"**Parsed JSON fields:** {badges}")
            lines.append("")

        if event.is_parsed:
            body = json.dumps(event.data, indent=2, ensure_ascii=False)
            lines.append(f"```json\n{body}\n```")
        else:
            lines.append(f"```\n{event.raw_data}\n```")
        lines.append("")

    # Remaining SSE fields
    extra = [(k, v) for k, v in event.fields.items() if k != "event"]
    if extra:
        for key, value in extra:
            lines.append(f"- **{key}:** {value}")
        lines.append("")

    return "\n".join(lines)


def format_events(events: list[EventRecord], title: str = "SSE Events") -> str:
    """
    Render a list of event records as a Markdown document.

    The document opens with a summary (event count, parse counts and an
    event-type breakdown) followed by one section per event.

    Parameters
    ----------
    events : list of EventRecord
        Records returned by the segmenter.
    title : str, optional
        Top-level heading of the document.

    Returns
    -------
    str
        The full Markdown text.
    """
    lines: list[str] = []
    lines.append(f"# {title}")
    lines.append("")

    if not events:
        lines.append("*(no events)*")
        return "\n".join(lines)

    parsed = sum(1 for e in events if e.is_parsed)
    deep = sum(1 for e in events if e.is_deep_parsed)
    with_data = sum(1 for e in events if e.has_data)
    lines.append(
        f"**Events:** {len(events)} | **With data:** {with_data}"
        f" | **Parsed JSON:** {parsed} | **Deeply parsed:** {deep}"
    )
    lines.append("")

    type_counts: Counter[str] = Counter(e.event or "(none)" for e in events)
    lines.append("| Event Type | Count |")
    lines.append("|------------|-------|")
    for etype, count in type_counts.most_common():
        lines.append(f"| `{etype}` | {count} |")
    lines.append("")

    for i, event in enumerate(events, 1):
        lines.append(format_event(event, i))

    return "\n".join(lines)
