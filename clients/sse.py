"""Server-sent event decoding for the analysis stream."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, AsyncIterator, Dict, List, Optional


@dataclass
class SSEEvent:
    event: str = "message"
    data: Dict[str, Any] = field(default_factory=dict)
    raw: str = ""


def _decode(raw: str) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        return {"text": raw}
    return value if isinstance(value, dict) else {"value": value}


def _build(event: Optional[str], data_lines: List[str]) -> Optional[SSEEvent]:
    if event is None and not data_lines:
        return None
    raw = "\n".join(data_lines)
    return SSEEvent(event=event or "message", data=_decode(raw), raw=raw)


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[SSEEvent]:
    """Group `event:`/`data:` lines into events; a blank line dispatches."""
    event: Optional[str] = None
    data_lines: List[str] = []

    async for line in lines:
        line = line.rstrip("\r")
        if not line:
            built = _build(event, data_lines)
            if built is not None:
                yield built
            event, data_lines = None, []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            event = value.strip()
        elif name == "data":
            data_lines.append(value)

    built = _build(event, data_lines)
    if built is not None:
        yield built
