from __future__ import annotations

from typing import Any, Iterator


class SqlRow:
    """One result row: named fields in column order."""

    def __init__(self) -> None:
        self._names: list[str] = []
        self._values: dict[str, Any] = {}

    @classmethod
    def from_mapping(cls, mapping: Any) -> "SqlRow":
        row = cls()
        for i, (name, value) in enumerate(mapping.items()):
            row.add(i, str(name), value)
        return row

    def add(self, order: int, name: str, value: Any) -> bool:
        """Insert a field at a column position. Returns False if the name is taken."""
        name = (name or "").strip()
        if not name:
            raise ValueError("name must not be empty")
        if name in self._values:
            return False
        order = max(0, min(int(order), len(self._names)))
        self._names.insert(order, name)
        self._values[name] = value
        return True

    @property
    def names(self) -> list[str]:
        return list(self._names)

    def get_value(self, key: int | str) -> Any:
        if isinstance(key, int):
            return self._values[self._names[key]]
        return self._values[key]

    def set_value(self, key: int | str, value: Any) -> None:
        name = self._names[key] if isinstance(key, int) else key
        if name not in self._values:
            raise KeyError(name)
        self._values[name] = value

    def __getitem__(self, key: int | str) -> Any:
        return self.get_value(key)

    def __setitem__(self, key: int | str, value: Any) -> None:
        self.set_value(key, value)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def items(self) -> list[tuple[str, Any]]:
        return [(n, self._values[n]) for n in self._names]

    def __repr__(self) -> str:
        return f"SqlRow({dict(self.items())!r})"
