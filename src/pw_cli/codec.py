"""Entry model and the JSON interchange format stored inside the cipher.

The plaintext is a JSON array of objects, each with exactly the string
fields ``name``, ``username`` and ``secret``. Encoding is deterministic so
an unchanged snapshot always produces identical plaintext.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .errors import MalformedData

FIELDS = ("name", "username", "secret")


@dataclass(frozen=True)
class Entry:
    """A stored credential. ``name`` is the unique key within a store."""

    name: str
    username: str
    secret: str

    def __repr__(self) -> str:
        return f"Entry(name={self.name!r}, username={self.username!r}, secret=***)"

    def to_dict(self) -> dict:
        return {"name": self.name, "username": self.username, "secret": self.secret}


def validate(entry: Entry) -> None:
    """Check that every field of ``entry`` can be encoded.

    Raises:
        ValueError: If a field is not a string or is not valid UTF-8,
            such as a lone surrogate from an undecodable argv byte.

    """
    for field in FIELDS:
        _check_text(getattr(entry, field), f"field '{field}'")


def encode(entries: Iterable[Entry]) -> bytes:
    """Serialize entries in order with a stable field order."""
    text = json.dumps(
        [entry.to_dict() for entry in entries],
        indent=2,
        ensure_ascii=False,
    )
    return (text + "\n").encode("utf-8")


def decode(data: Union[bytes, bytearray], path: Optional[Path] = None) -> List[Entry]:
    """Parse plaintext into entries.

    ``path`` names the store in error messages.

    Raises:
        MalformedData: If the data is not a JSON array of well-formed
            entries, or two entries share a name.

    """
    try:
        items = json.loads(data)
    except ValueError as e:
        # Covers JSONDecodeError and UnicodeDecodeError
        raise MalformedData(data, e, path) from e

    try:
        return _to_entries(items)
    except ValueError as e:
        raise MalformedData(data, e, path) from e


def _check_text(value, label: str) -> None:
    if not isinstance(value, str):
        raise ValueError(f"{label} is not a string")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError(f"{label} is not valid UTF-8") from None


def _to_entries(items) -> List[Entry]:
    if not isinstance(items, list):
        raise ValueError(f"expected a list of entries, got {type(items).__name__}")

    entries = []
    seen = set()
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"entry {index} is not an object")

        if set(item) != set(FIELDS):
            missing = sorted(set(FIELDS) - set(item))
            extra = sorted(set(item) - set(FIELDS))
            raise ValueError(
                f"entry {index} has missing fields {missing} or unexpected fields {extra}"
            )

        for field in FIELDS:
            _check_text(item[field], f"entry {index} field '{field}'")

        if item["name"] in seen:
            raise ValueError(f"duplicate entry name: {item['name']}")
        seen.add(item["name"])

        entries.append(Entry(item["name"], item["username"], item["secret"]))

    return entries
