"""Newline framing for the chunked live stream body.

Network chunks arrive at arbitrary byte offsets: one record may span several
chunks and one chunk may carry many records. The decoder keeps the trailing,
not-yet-terminated fragment between calls and only ever hands out complete
lines.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterator

logger = logging.getLogger(__name__)

TERMINATOR = b"\n"


class FrameLineDecoder:
    """Incremental bytes -> text line splitter.

    The carry-over is kept as raw bytes so a multi-byte UTF-8 sequence cut
    by a chunk boundary is only decoded once the whole line is present.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Bytes held in the carry-over buffer."""
        return len(self._buffer)

    def feed(self, chunk: bytes) -> Iterator[str]:
        """Append a chunk and lazily yield every line it completes.

        The chunk is buffered immediately, even if the returned iterator is
        never consumed.
        """
        self._buffer.extend(chunk)
        return self._drain()

    def _drain(self) -> Iterator[str]:
        while True:
            idx = self._buffer.find(TERMINATOR)
            if idx < 0:
                return
            raw = bytes(self._buffer[:idx])
            del self._buffer[: idx + 1]
            line = raw.decode(self.encoding, errors="replace").strip()
            if line:
                yield line

    def finish(self) -> None:
        """End of stream. A partial final record carries no message and is dropped."""
        if self._buffer:
            logger.debug("Discarding %d-byte unterminated fragment at end of stream", len(self._buffer))
        self._buffer.clear()


async def decode_lines(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    decoder = FrameLineDecoder()
    async for chunk in chunks:
        for line in decoder.feed(chunk):
            yield line
    decoder.finish()
