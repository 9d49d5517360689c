"""Line-aligned chunking of source text."""

from __future__ import annotations

from collections.abc import Callable

TokenCounter = Callable[[str], int]


def estimate_tokens(line: str) -> int:
    """Approximate token count of *line*: one token per four characters, at least one."""
    return max(1, len(line) // 4)


def _close(chunks: list[str], lines: list[str]) -> None:
    chunk = "\n".join(lines)
    if chunk:
        chunks.append(chunk)


def chunk_text(
    text: str,
    max_tokens_per_chunk: int,
    *,
    token_counter: TokenCounter = estimate_tokens,
) -> list[str]:
    r"""Split *text* into newline-joined chunks of roughly *max_tokens_per_chunk* tokens.

    Lines are appended to the current chunk one at a time; once the running
    estimate reaches the limit the chunk is closed and a new one begins.
    Lines are never split, so a single long line yields one oversized
    chunk.  Empty text yields no chunks, and a chunk made only of one blank
    line is dropped, so no chunk is ever the empty string.

    Text is split on ``\n`` only; a ``\r`` before it stays with its line.
    The terminator of the final line is not part of the last chunk, so
    ``"\n".join(chunks)`` reproduces *text* minus one
    trailing newline whenever no blank chunk was dropped.
    """
    if max_tokens_per_chunk <= 0:
        msg = "max_tokens_per_chunk must be > 0"
        raise ValueError(msg)

    chunks: list[str] = []
    current: list[str] = []
    count = 0

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()

    for line in lines:
        current.append(line)
        count += token_counter(line)
        if count >= max_tokens_per_chunk:
            _close(chunks, current)
            current = []
            count = 0

    if current:
        _close(chunks, current)

    return chunks
