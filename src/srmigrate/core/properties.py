"""Monotonic per-rule property maps.

Rule property maps are shared by every emitter that renders the rule's
tables. Emitters run one after another and each may add keys that the
next one sees, so the maps grow but are never cleared or pruned.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping


class PropertyMap(MutableMapping[str, str]):
    """Insertion-ordered string map that refuses key removal."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = {}
        if initial:
            for key, value in initial.items():
                self[key] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[str(key)] = str(value)

    def __delitem__(self, key: str) -> None:
        raise TypeError(f"Property '{key}' cannot be removed from a PropertyMap")

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"PropertyMap({self._data!r})"

    def copy(self) -> dict[str, str]:
        return dict(self._data)


def fill_missing(target: MutableMapping[str, str], computed: Mapping[str, str]) -> list[str]:
    """
    Copy computed values into `target` for keys it does not have yet.

    Values the user already set are left untouched.

    Returns:
        The keys that were added, in `computed` order.
    """
    added: list[str] = []
    for key, value in computed.items():
        if key in target:
            continue
        target[key] = value
        added.append(key)
    return added
