#!/usr/bin/env python3
"""pw - A command line password manager.

Entries live in one encrypted file (~/pw.scrypt by default). Secrets are
copied to the clipboard rather than printed unless --show is given.
"""

import argparse
import getpass
import os
import subprocess
import sys

from . import __version__
from .audit import AuditLogger
from .cipher import SecretBoxCipher, SubprocessCipher
from .codec import Entry
from .config import (
    CIPHERS,
    DEFAULT_PASSWORD_CHARSET,
    DEFAULT_PASSWORD_LENGTH,
    get_audit_log_path,
    get_cipher_binary,
    get_cipher_name,
    get_password,
    get_store_path,
)
from .errors import PwError, StoreNotFound
from .generator import generate_password
from .store import PasswordStore


def make_cipher(args, confirm=False):
    """Build the cipher selected by --cipher / PW_CIPHER."""
    name = get_cipher_name(args.cipher)

    if name == "secretbox":
        password = get_password("Enter master password: ")
        if confirm and get_password("Confirm master password: ") != password:
            raise ValueError("Passwords do not match")
        return SecretBoxCipher(password)

    return SubprocessCipher(get_cipher_binary())


def make_store(args, confirm=False):
    log_path = get_audit_log_path()
    audit_logger = AuditLogger(log_path) if log_path else None
    return PasswordStore(make_cipher(args, confirm), audit_logger)


def require_store(path):
    """Fail on a missing store before prompting for any secret."""
    if not path.exists():
        raise StoreNotFound(path)


def new_secret(args):
    """Prompt for the secret with --input-password, otherwise generate one."""
    if args.input_password:
        return getpass.getpass("Password to save: ")
    return generate_password(args.password_length, args.password_charset)


def copy_to_clipboard(text):
    """Copy text to clipboard using the platform tool, else print it."""
    if os.path.exists("/proc/version"):
        with open("/proc/version") as f:
            version = f.read().lower()
            if "microsoft" in version or "wsl" in version:
                cmd = ["clip.exe"]
            elif os.environ.get("WAYLAND_DISPLAY"):
                cmd = ["wl-copy"]
            else:
                cmd = ["xclip", "-selection", "clipboard"]
    elif sys.platform == "darwin":
        cmd = ["pbcopy"]
    else:
        print(text)
        print("(No clipboard tool available - printing to stdout)", file=sys.stderr)
        return

    try:
        proc = subprocess.run(cmd, input=text.encode("utf-8"), capture_output=True)
    except FileNotFoundError:
        print(text)
        print("(Clipboard tool not found - printing to stdout)", file=sys.stderr)
        return

    if proc.returncode == 0:
        print("(copied to clipboard)", file=sys.stderr)
    else:
        print(text)
        print("(Clipboard failed - printing to stdout)", file=sys.stderr)


def deliver_secret(args, secret):
    if args.show:
        print(secret)
    else:
        copy_to_clipboard(secret)


def cmd_init(args):
    """Create an empty encrypted passwords file."""
    path = get_store_path(args.file)
    make_store(args, confirm=True).init(path)
    print(f"{path} initialized")


def cmd_get(args):
    """Look up an entry."""
    path = get_store_path(args.file)
    entry = make_store(args).get(path, args.name)

    if entry.username:
        print(entry.username)
    deliver_secret(args, entry.secret)


def cmd_list(args):
    """List entry names and usernames."""
    path = get_store_path(args.file)
    for entry in make_store(args).list(path):
        print(f"{entry.name}: {entry.username}")


def cmd_add(args):
    """Add a new entry with a generated or prompted secret."""
    path = get_store_path(args.file)
    require_store(path)
    store = make_store(args)
    secret = new_secret(args)
    store.add(path, Entry(args.name, args.username, secret))
    deliver_secret(args, secret)


def cmd_update(args):
    """Replace the username and secret of an entry."""
    path = get_store_path(args.file)
    require_store(path)
    store = make_store(args)
    secret = new_secret(args)
    store.update(path, Entry(args.name, args.username, secret))
    deliver_secret(args, secret)


def cmd_remove(args):
    path = get_store_path(args.file)
    make_store(args).remove(path, args.name)
    print("Removed.")


def cmd_generate(args):
    """Generate a password without storing it."""
    deliver_secret(args, generate_password(args.password_length, args.password_charset))


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pw",
        description="pw - A command line password manager"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--file", help="The encrypted passwords file (default: ~/pw.scrypt)")
    parser.add_argument("--cipher", choices=CIPHERS, help="Cipher backend (default: scrypt)")
    parser.add_argument(
        "--password-length",
        type=int,
        default=DEFAULT_PASSWORD_LENGTH,
        help=f"Generated password length (default: {DEFAULT_PASSWORD_LENGTH})"
    )
    parser.add_argument(
        "--password-charset",
        default=DEFAULT_PASSWORD_CHARSET,
        help="Generated password charset"
    )
    parser.add_argument(
        "--input-password",
        action="store_true",
        help="Prompt for the password to save instead of generating one"
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Print secrets to stdout instead of copying to clipboard"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init", help="Create an empty encrypted passwords file")

    get_parser = subparsers.add_parser("get", help="Look up a password")
    get_parser.add_argument("name", help="Entry name")

    subparsers.add_parser("list", help="List all passwords")

    add_parser = subparsers.add_parser("add", help="Add a password")
    add_parser.add_argument("name", help="Entry name")
    add_parser.add_argument("username", nargs="?", default="", help="Username")

    update_parser = subparsers.add_parser("update", help="Update a password")
    update_parser.add_argument("name", help="Entry name")
    update_parser.add_argument("username", nargs="?", default="", help="Username")

    remove_parser = subparsers.add_parser("remove", help="Remove a password")
    remove_parser.add_argument("name", help="Entry name")

    subparsers.add_parser("generate", help="Generate a password without storing it")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "init": cmd_init,
        "get": cmd_get,
        "list": cmd_list,
        "add": cmd_add,
        "update": cmd_update,
        "remove": cmd_remove,
        "generate": cmd_generate,
    }

    try:
        commands[args.command](args)
    except (PwError, ValueError, OSError) as e:
        print(f"pw {args.command}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
