"""Configuration - default paths and environment overrides.

Resolution happens here, outside the store; the store only ever receives
concrete paths and a constructed cipher.
"""

import getpass
import os
from pathlib import Path
from typing import Optional

# Constants
DEFAULT_STORE = Path.home() / "pw.scrypt"
DEFAULT_AUDIT_LOG = Path.home() / ".pw" / "access.log"
DEFAULT_CIPHER = "scrypt"
DEFAULT_CIPHER_BINARY = "scrypt"
CIPHERS = ("scrypt", "secretbox")
DEFAULT_PASSWORD_LENGTH = 16
DEFAULT_PASSWORD_CHARSET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-"


def get_store_path(args_file=None):
    """Get store path from args, PW_FILE or default."""
    if args_file:
        return Path(args_file)
    env_file = os.environ.get("PW_FILE")
    return Path(env_file) if env_file else DEFAULT_STORE


def get_audit_log_path() -> Optional[Path]:
    """Get audit log path, or None when PW_AUDIT_LOG is set to 'off'."""
    env_log = os.environ.get("PW_AUDIT_LOG")
    if env_log == "off":
        return None
    return Path(env_log) if env_log else DEFAULT_AUDIT_LOG


def get_cipher_name(args_cipher=None):
    """Get cipher name from args, PW_CIPHER or default."""
    name = args_cipher or os.environ.get("PW_CIPHER") or DEFAULT_CIPHER
    if name not in CIPHERS:
        raise ValueError(f"Unknown cipher: {name} (choose from {', '.join(CIPHERS)})")
    return name


def get_cipher_binary():
    return os.environ.get("PW_CIPHER_BINARY") or DEFAULT_CIPHER_BINARY


def get_password(prompt="Enter master password: "):
    """Get password from environment variable or prompt.

    Checks PW_PASSWORD environment variable first for automation/testing.
    Falls back to interactive getpass prompt if not set.

    Security note: Using PW_PASSWORD in environment variables is less secure
    as it may be visible in process lists. Only use in isolated environments.
    """
    env_password = os.environ.get("PW_PASSWORD")
    if env_password:
        return env_password
    return getpass.getpass(prompt)


def set_permissions(path, mode=0o600):
    """Set file permissions."""
    os.chmod(path, mode)
