"""Scoped plaintext buffers that are zeroed when released."""

from typing import Union


class PlaintextBuffer:
    """A bytearray holding decrypted data for the length of a ``with`` block.

    The contents are overwritten with zeros on exit, whether the block
    returns normally or raises. Copies made from the buffer (``bytes``,
    decoded ``str`` objects) are outside its control.
    """

    def __init__(self, data: Union[bytes, bytearray, None] = None):
        self._data = bytearray(data or b"")

    def __enter__(self) -> "PlaintextBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __len__(self) -> int:
        return len(self._data)

    def extend(self, chunk: Union[bytes, bytearray, memoryview]) -> None:
        self._data.extend(chunk)

    @property
    def data(self) -> bytearray:
        return self._data

    def wipe(self) -> None:
        """Zero the buffer in place and release it."""
        self._data[:] = bytes(len(self._data))
        self._data.clear()

    def __repr__(self) -> str:
        # Never show the contents.
        return f"<PlaintextBuffer {len(self._data)} bytes>"


def wipe_bytearray(buf: bytearray) -> None:
    """Zero a scratch bytearray without resizing it."""
    buf[:] = bytes(len(buf))
