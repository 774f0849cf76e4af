"""Shared key-value publication surface.

The sensor (real bridge or simulation harness) publishes detection records
here, every component publishes its debug scalars here, and the operator
tuning surface reads and writes gains here. Keys are hierarchical, using
``/`` as separator, so a subsystem can be handed a ``subtable`` view that
shares the same underlying store.

Access is single-threaded and last-write-wins per key; no call blocks.
"""

from typing import Any, Dict, List, Optional, Sequence


class TelemetryTable:
    """Hierarchical in-process key-value table.

    Attributes:
        prefix: Key prefix of this view ("" for the root table).
    """

    def __init__(self, prefix: str = "", store: Optional[Dict[str, Any]] = None) -> None:
        self.prefix: str = prefix.strip("/")
        self._store: Dict[str, Any] = store if store is not None else {}

    def _key(self, key: str) -> str:
        key = key.strip("/")
        return f"{self.prefix}/{key}" if self.prefix else key

    def subtable(self, name: str) -> "TelemetryTable":
        """Return a view rooted at ``<prefix>/<name>`` sharing this store."""
        return TelemetryTable(self._key(name), self._store)

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def put_number(self, key: str, value: float) -> None:
        self._store[self._key(key)] = float(value)

    def put_boolean(self, key: str, value: bool) -> None:
        self._store[self._key(key)] = bool(value)

    def put_string(self, key: str, value: str) -> None:
        self._store[self._key(key)] = str(value)

    def put_number_array(self, key: str, values: Sequence[float]) -> None:
        self._store[self._key(key)] = tuple(float(v) for v in values)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def get_number(self, key: str, default: float = 0.0) -> float:
        """Read a number, returning ``default`` if absent or not numeric."""
        value = self._store.get(self._key(key))
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        return float(value)

    def get_boolean(self, key: str, default: bool = False) -> bool:
        value = self._store.get(self._key(key))
        return value if isinstance(value, bool) else default

    def get_string(self, key: str, default: str = "") -> str:
        value = self._store.get(self._key(key))
        return value if isinstance(value, str) else default

    def get_number_array(self, key: str, default: Sequence[float] = ()) -> List[float]:
        value = self._store.get(self._key(key))
        if not isinstance(value, tuple):
            return list(default)
        return list(value)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def contains(self, key: str) -> bool:
        return self._key(key) in self._store

    def delete(self, key: str) -> None:
        self._store.pop(self._key(key), None)

    def keys(self, prefix: str = "") -> List[str]:
        """List keys under this view, relative to it, optionally filtered by prefix."""
        own = f"{self.prefix}/" if self.prefix else ""
        relative = [k[len(own):] for k in self._store if k.startswith(own)]
        return sorted(k for k in relative if k.startswith(prefix))

    def snapshot(self) -> Dict[str, Any]:
        """Copy of every entry under this view, keyed relative to it."""
        return {key: self._store[self._key(key)] for key in self.keys()}

    def clear(self) -> None:
        """Remove every entry under this view."""
        for key in self.keys():
            self.delete(key)
