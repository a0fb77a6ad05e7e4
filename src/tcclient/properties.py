# properties.py
from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


class Properties(Mapping[str, str]):
    """
    Ordered string -> string property bag.

    This is the flat format the server persists step settings in. Keys are
    unique and keep their insertion order; a missing key is a different
    state from a key holding an empty string.
    """

    def __init__(self, items: Optional[Mapping[str, str]] = None):
        self._items: Dict[str, str] = {}
        if items:
            for key, value in items.items():
                self.set(key, value)

    @classmethod
    def empty(cls) -> Properties:
        return cls()

    def get_with_presence(self, key: str) -> Tuple[str, bool]:
        """Return (value, found). Absent keys give ("", False)."""
        if key in self._items:
            return self._items[key], True
        return "", False

    def set(self, key: str, value: str) -> None:
        """Insert `key`, or overwrite it in place if already present."""
        self._items[key] = value

    # ---- Mapping protocol ----
    def __getitem__(self, key: str) -> str:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Properties({self._items!r})"

    # ---- Wire format ----
    def to_wire(self) -> Dict[str, Any]:
        """
        Convert to the server's JSON shape:

            {"count": 2, "property": [{"name": "a", "value": "1"}, ...]}
        """
        return {
            "count": len(self._items),
            "property": [{"name": k, "value": v} for k, v in self._items.items()],
        }

    @classmethod
    def from_wire(cls, data: Optional[Mapping[str, Any]]) -> Properties:
        """
        Build a bag from the server's JSON shape.

        A missing or null `property` list gives an empty bag. When a name
        repeats, the last value wins.
        """
        props = cls.empty()
        if not data:
            return props
        for item in data.get("property") or []:
            props.set(item["name"], item.get("value", ""))
        return props
