"""Cipher gateway - encrypts and decrypts whole store files.

Two implementations share the ``Cipher`` interface:

    SubprocessCipher  shells out to an external binary (scrypt by default)
                      that owns the passphrase prompt and key derivation.
    SecretBoxCipher   encrypts in-process with libsodium via pynacl,
                      deriving the key from a password with Argon2id.
"""

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

import nacl.exceptions
import nacl.pwhash
import nacl.secret
import nacl.utils

from .errors import CipherFailure
from .secure import PlaintextBuffer, wipe_bytearray

# Constants
READ_CHUNK_SIZE = 4096
MAGIC = b"PWSB1"
SALT_SIZE = nacl.pwhash.argon2id.SALTBYTES
KEY_SIZE = nacl.secret.SecretBox.KEY_SIZE
OPS_LIMIT = nacl.pwhash.argon2id.OPSLIMIT_INTERACTIVE
MEM_LIMIT = nacl.pwhash.argon2id.MEMLIMIT_INTERACTIVE


class Cipher(ABC):
    """Whole-file encryption transform used by the store."""

    @abstractmethod
    def decrypt(self, path: Path) -> PlaintextBuffer:
        """Return the plaintext of the file at ``path``.

        Raises:
            CipherFailure: If the file could not be decrypted.

        """

    @abstractmethod
    def encrypt(self, path: Path, data: Union[bytes, bytearray]) -> None:
        """Encrypt ``data`` and write the ciphertext to ``path``.

        Raises:
            CipherFailure: If the ciphertext could not be written.

        """


class SubprocessCipher(Cipher):
    """Delegate to an external binary speaking the scrypt command line.

    ``<binary> dec <file>`` writes plaintext to stdout and
    ``<binary> enc - <file>`` reads plaintext from stdin. Any nonzero exit
    status is a failure. The binary prompts for its own passphrase on the
    terminal, so stdin is only redirected for encryption and stderr is
    always inherited.
    """

    def __init__(self, binary: str = "scrypt"):
        self.binary = binary

    def decrypt(self, path: Path) -> PlaintextBuffer:
        cmd = [self.binary, "dec", str(path)]
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE)
        except OSError as e:
            raise CipherFailure("decrypt", path, f"cipher unavailable: {e}") from e

        plaintext = PlaintextBuffer()
        chunk = bytearray(READ_CHUNK_SIZE)
        try:
            with proc.stdout:
                while True:
                    n = proc.stdout.readinto(chunk)
                    if not n:
                        break
                    plaintext.extend(memoryview(chunk)[:n])
            returncode = proc.wait()
        except BaseException:
            plaintext.wipe()
            proc.kill()
            proc.wait()
            raise
        finally:
            wipe_bytearray(chunk)

        if returncode != 0:
            plaintext.wipe()
            raise CipherFailure("decrypt", path, f"{self.binary} exited with an error", returncode)

        return plaintext

    def encrypt(self, path: Path, data: Union[bytes, bytearray]) -> None:
        cmd = [self.binary, "enc", "-", str(path)]
        try:
            proc = subprocess.Popen(cmd, stdin=subprocess.PIPE)
        except OSError as e:
            raise CipherFailure("encrypt", path, f"cipher unavailable: {e}") from e

        try:
            with proc.stdin:
                proc.stdin.write(data)
        except BrokenPipeError:
            # The binary exited early; its exit status tells the story.
            pass
        returncode = proc.wait()

        if returncode != 0:
            raise CipherFailure("encrypt", path, f"{self.binary} exited with an error", returncode)


class SecretBoxCipher(Cipher):
    """In-process authenticated encryption with XSalsa20-Poly1305.

    File layout: MAGIC | salt (16) | nonce (24) | mac (16) + ciphertext.
    A fresh salt and nonce are drawn for every write.
    """

    def __init__(self, password: str, opslimit: int = OPS_LIMIT, memlimit: int = MEM_LIMIT):
        self._password = password.encode("utf-8")
        self.opslimit = opslimit
        self.memlimit = memlimit

    def derive_key(self, salt: bytes) -> bytes:
        """Derive encryption key from the password using Argon2id."""
        return nacl.pwhash.argon2id.kdf(
            KEY_SIZE,
            self._password,
            salt,
            opslimit=self.opslimit,
            memlimit=self.memlimit
        )

    def decrypt(self, path: Path) -> PlaintextBuffer:
        try:
            blob = Path(path).read_bytes()
        except OSError as e:
            raise CipherFailure("decrypt", path, str(e)) from e

        header = len(MAGIC) + SALT_SIZE
        if not blob.startswith(MAGIC) or len(blob) < header:
            raise CipherFailure("decrypt", path, "not a secretbox store file")

        salt = blob[len(MAGIC):header]
        box = nacl.secret.SecretBox(self.derive_key(salt))
        try:
            return PlaintextBuffer(box.decrypt(blob[header:]))
        except (nacl.exceptions.CryptoError, ValueError) as e:
            raise CipherFailure("decrypt", path, "wrong password or corrupted file") from e

    def encrypt(self, path: Path, data: Union[bytes, bytearray]) -> None:
        salt = nacl.utils.random(SALT_SIZE)
        box = nacl.secret.SecretBox(self.derive_key(salt))
        # encrypt() returns nonce + mac + ciphertext
        ciphertext = box.encrypt(bytes(data))

        try:
            with open(path, "wb") as f:
                f.write(MAGIC + salt + ciphertext)
        except OSError as e:
            raise CipherFailure("encrypt", path, str(e)) from e
