"""
Incremental base64 encoding for data URLs.

Input arrives as byte chunks of arbitrary size. Only whole 3-byte groups are
encoded, in slices of at most ENCODE_CHUNK_SIZE bytes, and the remainder is
carried to the next chunk, so the output equals base64 of the concatenated
input without ever reassembling it.
"""

import base64
from typing import List

ENCODE_CHUNK_SIZE = 24 * 1024  # multiple of 3


class ChunkedBase64Encoder:
    def __init__(self, chunk_size: int = ENCODE_CHUNK_SIZE):
        if chunk_size <= 0 or chunk_size % 3:
            raise ValueError("chunk_size must be a positive multiple of 3")
        self.chunk_size = chunk_size
        self._pending = b""
        self._parts: List[str] = []
        self.bytes_read = 0

    def update(self, data: bytes) -> None:
        if not data:
            return
        self.bytes_read += len(data)
        buffer = self._pending + data
        usable = len(buffer) - (len(buffer) % 3)

        for start in range(0, usable, self.chunk_size):
            end = min(start + self.chunk_size, usable)
            self._parts.append(base64.b64encode(buffer[start:end]).decode("ascii"))
        self._pending = buffer[usable:]

    def finalize(self) -> str:
        if self._pending:
            self._parts.append(base64.b64encode(self._pending).decode("ascii"))
            self._pending = b""
        return "".join(self._parts)


def data_url(mime_type: str, encoded: str) -> str:
    return f"data:{mime_type};base64,{encoded}"

