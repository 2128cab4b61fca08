"""
Persistence adapters for the Realtime Database layout:

  /Programmes   list of programme records
  /RowErrors    list of rejected rows
  /updateTime   epoch milliseconds of the last ingestion
  /search       {"CSEC_Mathematics": {programmeKey: programme}}
  /users/{uid}  user profile

FirebaseStore talks to Firebase through firebase_admin.db. MemoryStore keeps
the same tree in-process (local development and tests) and mimics the bits of
Realtime Database behaviour the pipeline relies on: writing None or an empty
container deletes the node, and listeners fire after any write that touches
the listened path.
"""
from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

_FORBIDDEN_KEY_CHARS = ".$#[]"

Listener = Callable[[str], None]


class StoreError(Exception):
    pass


class StoreUnavailable(StoreError):
    pass


def split_path(path: Optional[str]) -> List[str]:
    parts = [p for p in str(path or "").split("/") if p]
    for p in parts:
        if any(ch in p for ch in _FORBIDDEN_KEY_CHARS):
            raise StoreError(f"Invalid path segment {p!r} in {path!r}")
    return parts


def join_path(parts: List[str]) -> str:
    return "/" + "/".join(parts)


class FirebaseStore:
    """Store backed by the Firebase Realtime Database (firebase_admin.db)."""

    def __init__(self, app=None):
        self._app = app

    def _ref(self, path: str):
        from firebase_admin import db

        return db.reference(join_path(split_path(path)), app=self._app)

    def get(self, path: str) -> Any:
        return self._ref(path).get()

    def set(self, path: str, value: Any) -> None:
        self._ref(path).set(value)

    def update(self, path: str, values: Dict[str, Any]) -> None:
        self._ref(path).update(values)

    def listen(self, path: str, callback: Listener):
        """Stream changes under `path`; returns the firebase ListenerRegistration."""
        normalized = join_path(split_path(path))

        def _on_event(event) -> None:
            logger.debug("listen %s: %s at %s", normalized, event.event_type, event.path)
            callback(normalized)

        return self._ref(path).listen(_on_event)


def _prune(value: Any) -> Any:
    """Realtime Database storage form: no None leaves, no empty containers."""
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            v = _prune(v)
            if v is not None:
                out[str(k)] = v
        return out or None
    if isinstance(value, (list, tuple)):
        items = [_prune(v) for v in value]
        if all(v is None for v in items):
            return None
        return items
    return value


class _Registration:
    def __init__(self, store: "MemoryStore", entry: Tuple[List[str], Listener]):
        self._store = store
        self._entry = entry

    def close(self) -> None:
        self._store._remove_listener(self._entry)


class MemoryStore:
    """In-process Realtime Database stand-in."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._root: Dict[str, Any] = _prune(copy.deepcopy(data or {})) or {}
        self._lock = threading.RLock()
        self._listeners: List[Tuple[List[str], Listener]] = []

    def get(self, path: str) -> Any:
        with self._lock:
            node: Any = self._root
            for part in split_path(path):
                if isinstance(node, dict) and part in node:
                    node = node[part]
                elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
                    node = node[int(part)]
                else:
                    return None
            return copy.deepcopy(node) if node != {} else None

    def set(self, path: str, value: Any) -> None:
        parts = split_path(path)
        with self._lock:
            self._write(parts, value)
        self._notify([parts])

    def update(self, path: str, values: Dict[str, Any]) -> None:
        base = split_path(path)
        targets = [base + split_path(key) for key in values]
        with self._lock:
            for parts, value in zip(targets, values.values()):
                self._write(parts, value)
        self._notify(targets)

    def listen(self, path: str, callback: Listener) -> _Registration:
        entry = (split_path(path), callback)
        with self._lock:
            self._listeners.append(entry)
        return _Registration(self, entry)

    def clear(self) -> None:
        with self._lock:
            self._root = {}

    def _remove_listener(self, entry) -> None:
        with self._lock:
            if entry in self._listeners:
                self._listeners.remove(entry)

    def _write(self, parts: List[str], value: Any) -> None:
        value = _prune(copy.deepcopy(value))
        if not parts:
            self._root = value if isinstance(value, dict) else {}
            return
        node: Any = self._root
        for part in parts[:-1]:
            if isinstance(node, list) and part.isdigit() and int(part) < len(node):
                child = node[int(part)]
            elif isinstance(node, dict):
                child = node.get(part)
            else:
                raise StoreError(f"Cannot write below a leaf at {join_path(parts)}")
            if child is None:
                if value is None:
                    return
                child = {}
                node[part] = child
            node = child
        last = parts[-1]
        if isinstance(node, list):
            if not (last.isdigit() and int(last) < len(node)):
                raise StoreError(f"Cannot write {join_path(parts)} into a list")
            node[int(last)] = value
        elif value is None:
            node.pop(last, None)
        else:
            node[last] = value

    def _notify(self, written: List[List[str]]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listened, callback in listeners:
            for parts in written:
                n = min(len(listened), len(parts))
                if listened[:n] == parts[:n]:
                    callback(join_path(listened))
                    break


def _unavailable(err: str) -> StoreUnavailable:
    detail = "Firebase admin not initialized"
    if err:
        detail = f"{detail}: {err}"
    return StoreUnavailable(detail)


_memory_store: Optional[MemoryStore] = None
_memory_lock = threading.Lock()


def _watched_memory_store() -> MemoryStore:
    """In-process store whose /Programmes writes rebuild /search, as the database trigger does."""
    from .triggers import Services, build_dispatcher, watch_programmes

    store = MemoryStore()
    watch_programmes(store, build_dispatcher(), lambda: Services(store=store))
    return store


def get_store():
    """Store selected by settings.PROGRAMMES_STORE ("firebase" or "memory")."""
    from django.conf import settings

    backend = (getattr(settings, "PROGRAMMES_STORE", "firebase") or "firebase").strip().lower()
    if backend == "memory":
        global _memory_store
        with _memory_lock:
            if _memory_store is None:
                _memory_store = _watched_memory_store()
            return _memory_store

    from accounts.auth import ensure_firebase_initialized, firebase_init_error

    if not ensure_firebase_initialized():
        raise _unavailable(firebase_init_error())
    return FirebaseStore()


def download_object(bucket_name: str, object_name: str) -> bytes:
    """Fetch an uploaded object from Cloud Storage through firebase_admin.storage."""
    from firebase_admin import storage

    from accounts.auth import ensure_firebase_initialized, firebase_init_error

    if not ensure_firebase_initialized():
        raise _unavailable(firebase_init_error())
    blob = storage.bucket(bucket_name or None).blob(object_name)
    return blob.download_as_bytes()
