"""Error types raised by the password store and its collaborators."""

from pathlib import Path
from typing import Optional, Union


class PwError(Exception):
    """Base class for all password store errors."""


class StoreNotFound(PwError):
    """Raised when an operation needs a store file that does not exist."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"File not found: {self.path}")


class StoreAlreadyExists(PwError):
    """Raised when init would overwrite an existing file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"File already exists: {self.path}")


class EntryNotFound(PwError):
    def __init__(self, name: str, path: Union[str, Path]):
        self.name = name
        self.path = Path(path)
        super().__init__(f"Entry not found: {name} in {self.path}")


class EntryAlreadyExists(PwError):
    def __init__(self, name: str, path: Union[str, Path]):
        self.name = name
        self.path = Path(path)
        super().__init__(f"Entry already exists: {name} in {self.path}")


class CipherFailure(PwError):
    """Raised when the cipher could not encrypt or decrypt a store file.

    The cause is not interpreted beyond what the cipher reports: a wrong
    passphrase, a corrupt file and a missing binary all end up here.
    """

    def __init__(
        self,
        operation: str,
        path: Union[str, Path],
        reason: str,
        returncode: Optional[int] = None
    ):
        self.operation = operation
        self.path = Path(path)
        self.reason = reason
        self.returncode = returncode

        msg = f"Cipher failed to {operation} {self.path}: {reason}"
        if returncode is not None:
            msg += f" (exit status {returncode})"
        super().__init__(msg)


class MalformedData(PwError):
    """Raised when decrypted data is not a valid entry list.

    Attributes:
        raw: The offending plaintext, kept for diagnostics. It is never
            part of the message since it may hold secrets.
        error: The underlying parse or validation error.
        path: The store file, when known.

    """

    def __init__(
        self,
        raw: bytes,
        error: Exception,
        path: Optional[Union[str, Path]] = None
    ):
        self.raw = bytes(raw)
        self.error = error
        self.path = Path(path) if path is not None else None

        where = self.path if self.path is not None else "store"
        super().__init__(f"Invalid data in {where}: {error}")
