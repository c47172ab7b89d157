"""
SSE formatter CLI: parses SSE text and writes JSON or Markdown.

Reads SSE text from a file, stdin, a percent-encoded ``--content``
argument, or from the SSE responses recorded in a captured-traffic
JSONL file, then writes the parsed event records as a JSON array or as
a Markdown report.

Functions
---------
load_entries : Parse a JSONL file into a list of dicts.
is_sse_response : Decide whether a captured response carries an SSE body.
extract_sse_bodies : Collect SSE response bodies from traffic entries.
read_input : Resolve the CLI input options to SSE text blobs.
render : Render parsed events in the requested output format.
main : CLI entry point.

Examples
--------
::

    python -m sse_formatter.tools.formatter stream.sse --format markdown
    python -m sse_formatter.tools.formatter --traffic tmp/traffic.jsonl \\
        --output tmp/sse-events.json
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from urllib.parse import unquote

from sse_formatter.parser.sse import parse_sse_events
from sse_formatter.parser.types import (
    DEFAULT_MAX_DEPTH,
    EventRecord,
    ParserOptions,
    events_to_json,
)
from sse_formatter.renderers.markdown import format_events

SSE_FIELD_PREFIXES = ("event:", "data:", "id:", "retry:")


# ---------------------------------------------------------------------------
# Captured traffic
# ---------------------------------------------------------------------------


def load_entries(path: str) -> list[dict]:
    """
    Load traffic entries from a JSONL file.

    Parameters
    ----------
    path : str
        Filesystem path to the ``.jsonl`` file.

    Returns
    -------
    list of dict
        Parsed JSON objects, one per non-empty line.  Malformed lines
        are skipped with a warning to stderr.
    """
    entries: list[dict] = []
    with open(path, encoding="utf-8") as f:
        for i, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError as e:
                print(f"WARNING: skipping malformed line {i}: {e}", file=sys.stderr)
    return entries


def is_sse_response(response: dict) -> bool:
    """
    Decide whether a captured response carries an SSE body.

    A response qualifies when its ``content-type`` header names
    ``text/event-stream``, or when its body is a string whose first
    non-blank text is an SSE field.
    """
    body = response.get("body")
    if not isinstance(body, str):
        return False
    headers = response.get("headers") or {}
    for k, v in headers.items():
        if k.lower() == "content-type" and "text/event-stream" in str(v):
            return True
    return body.lstrip().startswith(SSE_FIELD_PREFIXES)


def extract_sse_bodies(entries: list[dict]) -> list[tuple[str, str]]:
    """
    Collect SSE response bodies from captured traffic entries.

    Parameters
    ----------
    entries : list of dict
        Entries as written by a traffic capture, each with ``request``
        and ``response`` sub-dicts.

    Returns
    -------
    list of (str, str)
        ``(label, body)`` pairs where *label* is ``"METHOD URL"``.
    """
    bodies: list[tuple[str, str]] = []
    for entry in entries:
        req = entry.get("request") or {}
        resp = entry.get("response") or {}
        if not is_sse_response(resp):
            continue
        label = f"{req.get('method', '?')} {req.get('url', '?')}"
        bodies.append((label, resp["body"]))
    return bodies


# ---------------------------------------------------------------------------
# Input / output
# ---------------------------------------------------------------------------


def read_input(args: argparse.Namespace) -> list[tuple[str, str]]:
    """
    Resolve the CLI input options to SSE text blobs.

    Returns
    -------
    list of (str, str)
        ``(label, text)`` pairs.  Exits with status 1 on unreadable input.
    """
    if args.content is not None:
        try:
            text = unquote(args.content, errors="strict")
        except UnicodeDecodeError as e:
            print(f"ERROR: cannot decode --content: {e}", file=sys.stderr)
            sys.exit(1)
        return [("content", text)]

    if args.traffic is not None:
        if not os.path.exists(args.traffic):
            print(f"ERROR: traffic file not found: {args.traffic}", file=sys.stderr)
            sys.exit(1)
        bodies = extract_sse_bodies(load_entries(args.traffic))
        if not bodies:
            print(f"WARNING: no SSE responses in {args.traffic}", file=sys.stderr)
        return bodies

    if args.input is None or args.input == "-":
        return [("stdin", sys.stdin.read())]

    if not os.path.exists(args.input):
        print(f"ERROR: input file not found: {args.input}", file=sys.stderr)
        sys.exit(1)
    with open(args.input, encoding="utf-8", errors="replace") as f:
        return [(args.input, f.read())]


def render(streams: list[tuple[str, list[EventRecord]]], fmt: str) -> str:
    """
    Render parsed streams in the requested output format.

    A single stream renders as a bare JSON array (or one Markdown
    document).  Several streams, as read from captured traffic, render
    as a JSON array of ``{"source", "events"}`` objects (or one Markdown
    section per stream).
    """
    if fmt == "markdown":
        if len(streams) == 1:
            return format_events(streams[0][1])
        return "\n".join(format_events(events, title=label) for label, events in streams)

    if len(streams) == 1:
        return events_to_json(streams[0][1])
    return json.dumps(
        [
            {"source": label, "events": [e.to_dict() for e in events]}
            for label, events in streams
        ],
        indent=2,
        ensure_ascii=False,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse SSE text and unwind JSON embedded in event data."
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=None,
        help="Path to an SSE text file ('-' or omitted reads stdin).",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--content",
        default=None,
        help="Percent-encoded SSE text, as passed in a ?content= URL parameter.",
    )
    source.add_argument(
        "--traffic",
        default=None,
        help="Captured traffic JSONL; every SSE response body is parsed.",
    )
    parser.add_argument(
        "--format",
        choices=("json", "markdown"),
        default="json",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Path to write the result (default: stdout).",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Nesting ceiling for embedded-JSON discovery (default: {DEFAULT_MAX_DEPTH}).",
    )
    parser.add_argument(
        "--no-recovery",
        action="store_true",
        help="Do not retry undecodable payloads with escaped quotes unescaped.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments, parse the SSE input, and write the result."""
    args = build_parser().parse_args(argv)

    options = ParserOptions(max_depth=args.max_depth)
    if args.no_recovery:
        options.recoveries = ()

    streams = [
        (label, parse_sse_events(text, options)) for label, text in read_input(args)
    ]
    output = render(streams, args.format)

    if args.output is None:
        print(output)
        return

    os.makedirs(os.path.dirname(args.output) or ".", exist_ok=True)
    with open(args.output, "w", encoding="utf-8") as f:
        f.write(output + "\n")
    count = sum(len(events) for _, events in streams)
    print(f"{count} events written to {args.output}", file=sys.stderr)


if __name__ == "__main__":
    main()
