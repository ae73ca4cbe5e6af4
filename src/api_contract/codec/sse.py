"""Minimal server-sent-events framing for streaming endpoints."""

from typing import Iterable, Iterator


def encode_event(data: bytes) -> bytes:
    lines = data.split(b"\n")
    return b"".join(b"data: " + line + b"\n" for line in lines) + b"\n"


def iter_event_data(lines: Iterable[str]) -> Iterator[str]:
    """Yield the joined ``data`` field of every event in a line stream."""
    buffer: list[str] = []
    for line in lines:
        if not line:
            if buffer:
                yield "\n".join(buffer)
                buffer = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field == "data":
            buffer.append(value[1:] if value.startswith(" ") else value)
    if buffer:
        yield "\n".join(buffer)
