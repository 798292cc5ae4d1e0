"""
Persistent key-value settings with change notifications.

Stores belong to a named area ("sync", "local", ...). Every write is broadcast
through a ChangeNotifier as ({key: StorageChange}, area_name); consumers
subscribe to one key of one area with `watch_key`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

SYNC_AREA = "sync"
LOCAL_AREA = "local"


@dataclass(frozen=True, slots=True)
class StorageChange:
    old_value: Any = None
    new_value: Any = None


ChangeListener = Callable[[dict[str, StorageChange], str], None]


class ChangeNotifier:
    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def emit(self, changes: dict[str, StorageChange], area: str) -> None:
        for listener in list(self._listeners):
            listener(changes, area)


def watch_key(
    notifier: ChangeNotifier, *, area: str, key: str, callback: Callable[[Any], None]
) -> Callable[[], None]:
    """Call `callback(new_value)` only for changes of `key` in `area`."""

    def _listener(changes: dict[str, StorageChange], area_name: str) -> None:
        if area_name != area or key not in changes:
            return
        callback(changes[key].new_value)

    return notifier.add_listener(_listener)


class JsonSettingsStore:
    def __init__(self, path: Path, *, area: str = SYNC_AREA, notifier: ChangeNotifier | None = None):
        self.path = path
        self.area = area
        self.notifier = notifier or ChangeNotifier()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Unreadable settings file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    async def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    async def set(self, key: str, value: Any) -> None:
        data = self._read()
        old = data.get(key)
        data[key] = value
        self._write(data)
        self.notifier.emit({key: StorageChange(old_value=old, new_value=value)}, self.area)

    async def remove(self, key: str) -> None:
        data = self._read()
        if key not in data:
            return
        old = data.pop(key)
        self._write(data)
        self.notifier.emit({key: StorageChange(old_value=old, new_value=None)}, self.area)
