"""
Mitmproxy addon that records SSE responses with their parsed events.

Load it with ``mitmdump -s`` from the environment where
``sse_formatter`` is installed (``mitmproxy`` is a dependency of the
package, so ``mitmdump`` from that environment can import it)::

    mitmdump --mode reverse:https://api.example.com/ -p 8080 \\
        -s src/sse_formatter/tools/capture_addon.py

Every response whose ``content-type`` is ``text/event-stream`` is
appended to ``sse_capture.jsonl`` in ``SSE_CAPTURE_OUTPUT_DIR`` (default:
the current directory), together with the events parsed from its body.
The file can be re-read with ``sse-format --traffic``.

Functions
---------
build_entry : Build the JSONL record for one captured SSE flow.
load : Called by mitmproxy on addon load; logs output path.
response : Called on each completed HTTP flow; appends SSE flows to JSONL.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import time
from typing import Any

from mitmproxy import http

from sse_formatter.parser.sse import parse_sse_events

OUTPUT_FILENAME = "sse_capture.jsonl"

logger = logging.getLogger(__name__)


def output_path() -> str:
    output_dir = os.environ.get("SSE_CAPTURE_OUTPUT_DIR", os.getcwd())
    return os.path.join(output_dir, OUTPUT_FILENAME)


def build_entry(flow: http.HTTPFlow) -> dict[str, Any] | None:
    """
    Build the JSONL record for one captured flow.

    Parameters
    ----------
    flow : mitmproxy.http.HTTPFlow
        The completed HTTP request/response flow.

    Returns
    -------
    dict or None
        The record, or ``None`` when the flow has no SSE response.  The
        record's ``request``/``response`` layout is the one read back by
        :func:`sse_formatter.tools.formatter.extract_sse_bodies`.
    """
    if flow.response is None or not flow.response.content:
        return None
    content_type = flow.response.headers.get("content-type", "")
    if "text/event-stream" not in content_type:
        return None

    body = flow.response.content.decode("utf-8", errors="replace")
    events = parse_sse_events(body)
    return {
        "timestamp": time.time(),
        "request": {
            "method": flow.request.method,
            "url": flow.request.pretty_url,
        },
        "response": {
            "status_code": flow.response.status_code,
            "headers": {"content-type": content_type},
            "body": body,
        },
        "events": [e.to_dict() for e in events],
    }


def load(loader):  # noqa: ARG001
    """Log the output path when the addon is loaded by mitmproxy."""
    logger.info(f"SSE capture addon loaded. Output: {output_path()}")


def response(flow: http.HTTPFlow) -> None:
    """
    Append an SSE flow and its parsed events to the JSONL log.

    Non-SSE flows are ignored.  File-level locking prevents interleaved
    writes when multiple mitmdump instances share the same output file.

    Parameters
    ----------
    flow : mitmproxy.http.HTTPFlow
        The completed HTTP request/response flow.
    """
    entry = build_entry(flow)
    if entry is None:
        return

    deep = sum(1 for e in entry["events"] if e["isDeepParsed"])
    logger.info(
        f"SSE: {flow.request.method} {flow.request.pretty_url}"
        f" -> {len(entry['events'])} events ({deep} deeply parsed)"
    )

    path = output_path()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    line = json.dumps(entry, ensure_ascii=False) + "\n"
    with open(path, "a", encoding="utf-8") as f:
        fcntl.flock(f, fcntl.LOCK_EX)
        f.write(line)
        f.flush()
        fcntl.flock(f, fcntl.LOCK_UN)
