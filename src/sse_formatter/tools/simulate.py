"""
Simulated SSE stream playback.

Feeds SSE chunks into a growing buffer one at a time, re-parsing the
whole buffer after each chunk, to approximate a live view of a stream.
Playback is owned by a :class:`StreamSimulator`, which carries its own
cancellation token; stopping one simulator never affects another.

Classes
-------
StreamUpdate : Snapshot delivered after each chunk.
StreamSimulator : Timed playback of SSE chunks with cancellation.

Functions
---------
split_chunks : Split SSE text into per-event chunks.
main : CLI entry point.

Examples
--------
::

    python -m sse_formatter.tools.simulate --interval 0.5
    python -m sse_formatter.tools.simulate recorded.sse --format markdown
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from sse_formatter.parser.sse import parse_sse_events
from sse_formatter.parser.types import EventRecord, ParserOptions
from sse_formatter.renderers.markdown import data_label, format_events

SAMPLE_EVENTS = [
    'data: {"message": "Simple JSON event", "count": 1}\n\n',
    'event: update\ndata: {"status": "processing", "progress": 33}\n\n',
    'data: {"nested": {"foo": "bar", "items": [1, 2, 3]}}\n\n',
    'event: complex\ndata: {"data": "{\\"nested\\": {\\"deeply\\": {\\"value\\": true}}}"}\n\n',
    'data: {"config": {"settings": "{\\"theme\\": \\"dark\\", \\"notifications\\": true}"}}\n\n',
    'data: {"results": [{"data": "{\\"id\\": 1, \\"name\\": \\"Item 1\\"}"},'
    ' {"data": "{\\"id\\": 2, \\"name\\": \\"Item 2\\"}"}]}\n\n',
    'data: {"mixed": {"normal": "plain text", "json": "{\\"parsed\\": true, \\"count\\": 42}"}}\n\n',
    'data: {"escaped": "This has \\"quotes\\" inside"}\n\n',
    "data: Not valid JSON but still displayed\n\n",
    'event: complete\ndata: {"status": "done", "progress": 100}\n\n',
]


@dataclass
class StreamUpdate:
    """
    Snapshot delivered after each chunk.

    Attributes
    ----------
    step : int
        1-based number of chunks played so far.
    buffer : str
        All text received so far.
    events : list of EventRecord
        Result of parsing *buffer*.
    """

    step: int
    buffer: str
    events: list[EventRecord]


class StreamSimulator:
    """
    Timed playback of SSE chunks with its own cancellation token.

    Parameters
    ----------
    chunks : list of str
        SSE text fragments, appended to the buffer in order.
    interval : float, optional
        Seconds to wait before each chunk after the first.
    options : ParserOptions, optional
        Options forwarded to the parser.
    """

    def __init__(
        self,
        chunks: list[str],
        interval: float = 1.0,
        options: ParserOptions | None = None,
    ) -> None:
        self.chunks = list(chunks)
        self.interval = interval
        self.options = options or ParserOptions()
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def stop(self) -> None:
        """Cancel playback; safe to call from any thread."""
        self._cancelled.set()

    def updates(self) -> Iterator[StreamUpdate]:
        """
        Play the chunks, yielding a snapshot after each one.

        Waits *interval* seconds between chunks.  The wait returns early
        and playback ends as soon as :meth:`stop` is called.
        """
        buffer = ""
        for step, chunk in enumerate(self.chunks, 1):
            if step > 1 and self._cancelled.wait(self.interval):
                return
            if self.cancelled:
                return
            buffer += chunk
            yield StreamUpdate(step, buffer, parse_sse_events(buffer, self.options))

    def run(self, on_update: Callable[[StreamUpdate], None]) -> list[EventRecord]:
        """
        Play every chunk, calling *on_update* after each.

        Returns
        -------
        list of EventRecord
            Events parsed from the final buffer (empty if cancelled
            before the first chunk).
        """
        events: list[EventRecord] = []
        for update in self.updates():
            on_update(update)
            events = update.events
        return events


def split_chunks(text: str) -> list[str]:
    """
    Split SSE text into per-event chunks.

    Each chunk keeps its terminating blank line so that concatenating
    the chunks reproduces the event framing.
    """
    normalized = text.replace("\r\n", "\n")
    return [block + "\n\n" for block in normalized.split("\n\n") if block.strip()]


def _print_update(update: StreamUpdate) -> None:
    latest = update.events[-1] if update.events else None
    summary = f"[{update.step}] {len(update.events)} events"
    if latest is not None:
        kind = latest.event or "message"
        summary += f" | latest: {kind}"
        if latest.has_data:
            summary += f" ({data_label(latest)})"
    print(summary)
    if latest is not None and latest.has_data:
        if latest.is_parsed:
            print(json.dumps(latest.data, ensure_ascii=False))
        else:
            print(latest.raw_data)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and play a simulated stream."""
    parser = argparse.ArgumentParser(
        description="Play SSE events chunk by chunk, re-parsing after each."
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=None,
        help="SSE file to replay (default: built-in sample stream).",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=1.0,
        help="Seconds between chunks (default: 1.0).",
    )
    parser.add_argument(
        "--format",
        choices=("summary", "markdown"),
        default="summary",
        help="Print per-chunk summaries, or a Markdown report at the end.",
    )
    args = parser.parse_args(argv)

    if args.input is None:
        chunks = SAMPLE_EVENTS
    else:
        if not os.path.exists(args.input):
            print(f"ERROR: input file not found: {args.input}", file=sys.stderr)
            sys.exit(1)
        with open(args.input, encoding="utf-8", errors="replace") as f:
            chunks = split_chunks(f.read())

    simulator = StreamSimulator(chunks, interval=args.interval)
    on_update = _print_update if args.format == "summary" else (lambda update: None)
    try:
        events = simulator.run(on_update)
    except KeyboardInterrupt:
        simulator.stop()
        print("\nSimulation stopped.", file=sys.stderr)
        return

    if args.format == "markdown":
        print(format_events(events, title="Simulated SSE Stream"))


if __name__ == "__main__":
    main()
