"""Pytest fixtures and utilities for pw tests."""

import stat
import tempfile
from pathlib import Path

import pytest
import nacl.pwhash

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pw_cli.cipher import Cipher, SecretBoxCipher
from pw_cli.codec import Entry
from pw_cli.errors import CipherFailure
from pw_cli.secure import PlaintextBuffer
from pw_cli.store import PasswordStore


# Stand-in for the scrypt binary: "dec FILE" prints FILE, "enc - FILE"
# copies stdin to FILE. No actual encryption.
FAKE_SCRYPT = """#!/bin/sh
case "$1" in
  dec) exec cat "$2" ;;
  enc) exec cat > "$3" ;;
  *) exit 2 ;;
esac
"""

FAILING_SCRYPT = """#!/bin/sh
echo "scrypt: Passphrase is incorrect" >&2
exit 3
"""


# Exits 0 on encrypt without creating the output file.
SILENT_SCRYPT = """#!/bin/sh
cat > /dev/null
exit 0
"""


class FakeCipher(Cipher):
    """Reversible in-process cipher that records calls and can fail on demand."""

    PREFIX = b"FAKE:"

    def __init__(self):
        self.decrypt_calls = 0
        self.encrypt_calls = 0
        self.fail_decrypt = False
        self.fail_encrypt = False
        self.partial_write = False

    def decrypt(self, path):
        self.decrypt_calls += 1
        if self.fail_decrypt:
            raise CipherFailure("decrypt", path, "forced failure", 1)
        blob = Path(path).read_bytes()
        if not blob.startswith(self.PREFIX):
            raise CipherFailure("decrypt", path, "not a fake store", 1)
        return PlaintextBuffer(bytes(reversed(blob[len(self.PREFIX):])))

    def encrypt(self, path, data):
        self.encrypt_calls += 1
        if self.fail_encrypt:
            if self.partial_write:
                Path(path).write_bytes(b"trunc")
            raise CipherFailure("encrypt", path, "forced failure", 1)
        Path(path).write_bytes(self.PREFIX + bytes(reversed(bytes(data))))

    def plaintext(self, path):
        with self.decrypt(path) as buf:
            return bytes(buf.data)


def write_script(path, body):
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def temp_store_dir():
    """Create a temporary directory for store files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store_path(temp_store_dir):
    return temp_store_dir / "pw.scrypt"


@pytest.fixture
def fake_cipher():
    return FakeCipher()


@pytest.fixture
def store(fake_cipher):
    return PasswordStore(fake_cipher)


@pytest.fixture
def initialized_store(store, store_path):
    """An empty, initialized store at store_path."""
    store.init(store_path)
    return store_path


@pytest.fixture
def populated_store(store, initialized_store):
    """A store holding three entries."""
    entries = [
        Entry("mail", "a@b.com", "p1"),
        Entry("bank", "", "p2"),
        Entry("work/vpn", "jdoe", "p3"),
    ]
    for entry in entries:
        store.add(initialized_store, entry)
    return {"path": initialized_store, "entries": entries}


@pytest.fixture
def fake_scrypt(temp_store_dir):
    """Path to an executable scrypt stand-in."""
    return write_script(temp_store_dir / "fake-scrypt", FAKE_SCRYPT)


@pytest.fixture
def failing_scrypt(temp_store_dir):
    """Path to a scrypt stand-in that always exits 3."""
    return write_script(temp_store_dir / "failing-scrypt", FAILING_SCRYPT)


@pytest.fixture
def silent_scrypt(temp_store_dir):
    """Path to a scrypt stand-in that succeeds without writing."""
    return write_script(temp_store_dir / "silent-scrypt", SILENT_SCRYPT)


@pytest.fixture
def secretbox_cipher():
    """SecretBox cipher with the cheapest Argon2id limits."""
    return SecretBoxCipher(
        "test_password_123",
        opslimit=nacl.pwhash.argon2id.OPSLIMIT_MIN,
        memlimit=nacl.pwhash.argon2id.MEMLIMIT_MIN
    )


@pytest.fixture
def audit_logger(temp_store_dir):
    """Create an audit logger with temp log path."""
    from pw_cli.audit import AuditLogger
    log_path = temp_store_dir / "access.log"
    logger = AuditLogger(log_path)
    yield logger


@pytest.fixture
def cli_env(temp_store_dir, fake_scrypt, monkeypatch):
    """Environment for running the CLI against the scrypt stand-in."""
    for var in ("PW_FILE", "PW_CIPHER", "PW_PASSWORD"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PW_CIPHER_BINARY", str(fake_scrypt))
    monkeypatch.setenv("PW_AUDIT_LOG", str(temp_store_dir / "audit" / "access.log"))
    yield {
        "store": temp_store_dir / "pw.scrypt",
        "audit_log": temp_store_dir / "audit" / "access.log",
    }


def assert_log_entry(audit_logger, result, action, name=None):
    """Helper to verify a log entry exists."""
    recent = audit_logger.read_recent(100)
    for line in recent:
        parts = line.strip().split()
        if len(parts) >= 6:
            if parts[2] == result and parts[3] == action:
                if name is None or parts[5] == name:
                    return True
    return False
