"""Password Store - CRUD over a single encrypted entry file.

Every operation decrypts and decodes the whole file; every mutation
re-encodes and re-encrypts the whole snapshot. Nothing is cached between
operations.
"""

import os
import secrets
from pathlib import Path
from typing import List, Optional

from .audit import AuditLogger
from .cipher import Cipher
from .codec import Entry, decode, encode, validate
from .config import set_permissions
from .errors import (
    CipherFailure,
    EntryAlreadyExists,
    EntryNotFound,
    PwError,
    StoreAlreadyExists,
    StoreNotFound,
)
from .secure import PlaintextBuffer


class PasswordStore:
    """Read-modify-write access to an encrypted list of entries."""

    def __init__(self, cipher: Cipher, audit_logger: Optional[AuditLogger] = None):
        self.cipher = cipher
        self.audit_logger = audit_logger

    def init(self, path: Path) -> None:
        """Create a new store holding no entries. Never overwrites."""
        path = Path(path)
        with self._audit("INIT", path):
            if path.exists():
                raise StoreAlreadyExists(path)
            self._write(path, [])

    def get(self, path: Path, name: str) -> Entry:
        path = Path(path)
        with self._audit("GET", path, name):
            for entry in self._read(path):
                if entry.name == name:
                    return entry
            raise EntryNotFound(name, path)

    def list(self, path: Path) -> List[Entry]:
        """Return every entry in stored order."""
        path = Path(path)
        with self._audit("LIST", path):
            return self._read(path)

    def add(self, path: Path, entry: Entry) -> None:
        path = Path(path)
        with self._audit("ADD", path, entry.name):
            validate(entry)
            entries = self._read(path)

            if any(e.name == entry.name for e in entries):
                raise EntryAlreadyExists(entry.name, path)

            entries.append(entry)
            self._write(path, entries)

    def update(self, path: Path, entry: Entry) -> None:
        """Replace username and secret of an existing entry, keeping its position."""
        path = Path(path)
        with self._audit("UPDATE", path, entry.name):
            validate(entry)
            entries = self._read(path)

            for i, existing in enumerate(entries):
                if existing.name == entry.name:
                    entries[i] = Entry(existing.name, entry.username, entry.secret)
                    break
            else:
                raise EntryNotFound(entry.name, path)

            self._write(path, entries)

    def remove(self, path: Path, name: str) -> None:
        """Remove every entry called ``name``."""
        path = Path(path)
        with self._audit("REMOVE", path, name):
            entries = self._read(path)

            remaining = [e for e in entries if e.name != name]
            if len(remaining) == len(entries):
                raise EntryNotFound(name, path)

            self._write(path, remaining)

    def _read(self, path: Path) -> List[Entry]:
        if not path.exists():
            raise StoreNotFound(path)

        with self.cipher.decrypt(path) as plaintext:
            return decode(plaintext.data, path)

    def _write(self, path: Path, entries: List[Entry]) -> None:
        """Encrypt into a sibling temp file, then rename it over ``path``.

        The target is only replaced after the cipher reports success, so a
        failed write leaves the previous ciphertext in place.
        """
        tmp_path = path.with_name(f".{path.name}.{secrets.token_hex(4)}.tmp")

        with PlaintextBuffer(encode(entries)) as plaintext:
            try:
                self.cipher.encrypt(tmp_path, plaintext.data)
                if not tmp_path.exists():
                    raise CipherFailure("encrypt", path, "cipher wrote no output")
                try:
                    set_permissions(tmp_path)
                    os.replace(tmp_path, path)
                except OSError as e:
                    raise CipherFailure("encrypt", path, str(e)) from e
            except BaseException:
                if tmp_path.exists():
                    tmp_path.unlink()
                raise

    def _audit(self, action: str, path: Path, name: Optional[str] = None):
        return _AuditScope(self.audit_logger, action, path, name)


class _AuditScope:
    """Log one line per store operation with its outcome."""

    def __init__(self, audit_logger, action, path, name):
        self.audit_logger = audit_logger
        self.action = action
        self.path = path
        self.name = name

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.audit_logger is None:
            return False

        if exc_type is None:
            result, reason = "OK", None
        elif issubclass(exc_type, PwError):
            result, reason = "ERROR", exc_type.__name__
        else:
            result, reason = "ERROR", "unexpected"

        self.audit_logger.log_operation(
            result=result,
            action=self.action,
            store=str(self.path),
            name=self.name,
            reason=reason
        )
        return False
