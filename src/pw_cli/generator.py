"""Random password generation."""

import secrets

from .config import DEFAULT_PASSWORD_CHARSET, DEFAULT_PASSWORD_LENGTH


def generate_password(length=DEFAULT_PASSWORD_LENGTH, charset=DEFAULT_PASSWORD_CHARSET):
    """Generate a password of ``length`` characters drawn from ``charset``.

    Each position is an independent uniform pick over the charset's
    characters (repeats count positionally), using the OS CSPRNG.

    Raises:
        ValueError: If charset is empty or length is negative.

    """
    if length < 0:
        raise ValueError(f"Password length must not be negative: {length}")

    choices = list(charset)
    if not choices:
        raise ValueError("Password charset must not be empty")

    return "".join(secrets.choice(choices) for _ in range(length))
