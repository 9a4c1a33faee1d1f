from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Mapping, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Shared key/value storage written by the host app and read by widgets."""

    def get(self, key: str, default: str | None = None) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def update(self, values: Mapping[str, str]) -> None:
        ...

    def snapshot(self) -> dict[str, str]:
        ...


class MemoryStore:
    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._lock = Lock()
        self._values: dict[str, str] = dict(values or {})

    def get(self, key: str, default: str | None = None) -> str | None:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self.update({key: value})

    def update(self, values: Mapping[str, str]) -> None:
        with self._lock:
            self._values.update({key: str(value) for key, value in values.items()})

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(self._values)


class JsonFileStore:
    """JSON-backed store; reads come from memory, writes persist in the background."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = Lock()
        self._executor: ThreadPoolExecutor | None = ThreadPoolExecutor(max_workers=1)
        self._pending: Future | None = None
        self._values = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read widget store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Widget store %s does not hold a JSON object; ignoring it", self.path)
            return {}
        return {str(key): "" if value is None else str(value) for key, value in data.items()}

    def _persist_async(self, snapshot: str) -> None:
        def _write(payload: str) -> None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")

        executor = self._executor
        if executor is None:
            _write(snapshot)
            return
        self._pending = executor.submit(_write, snapshot)

    def get(self, key: str, default: str | None = None) -> str | None:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self.update({key: value})

    def update(self, values: Mapping[str, str]) -> None:
        with self._lock:
            self._values.update({key: str(value) for key, value in values.items()})
            snapshot = json.dumps(self._values, indent=2, sort_keys=True)
            # Submitted under the lock so writes reach the worker in snapshot order.
            self._persist_async(snapshot)

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(self._values)

    def wait_for_io(self) -> None:
        pending = self._pending
        if pending is not None:
            pending.result()
            self._pending = None

    def close(self) -> None:
        executor = self._executor
        if executor is None:
            return
        self.wait_for_io()
        executor.shutdown(wait=True)
        self._executor = None
