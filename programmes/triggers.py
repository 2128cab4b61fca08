"""
Event handlers and the dispatcher that routes platform events to them.

Three event types are handled, each as an independent invocation:

  storage.object.change  an object was written to (or removed from) Cloud Storage
  database.write         the /Programmes node changed
  auth.user.create       a user signed up

Handlers are plain functions taking (payload, services); everything they touch
comes in through `services`, so nothing is shared between invocations.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from accounts.provisioning import AuthUser, provision_user

from .ingest import process_csv
from .search import rebuild_search_index

logger = logging.getLogger(__name__)

STORAGE_OBJECT_CHANGE = 'storage.object.change'
DATABASE_WRITE = 'database.write'
USER_CREATED = 'auth.user.create'

PROGRAMMES_PATH = '/Programmes'
CSV_CONTENT_TYPE = 'application/vnd.ms-excel'
NOT_EXISTS = 'not_exists'


@dataclass(frozen=True)
class StorageObject:
    bucket: str
    name: str
    content_type: Optional[str] = None
    resource_state: Optional[str] = None

    @classmethod
    def from_notification(cls, data: Dict[str, Any]) -> 'StorageObject':
        """Accepts Cloud Storage object metadata (camelCase) plus an optional
        resourceState, or a Pub/Sub style eventType of OBJECT_DELETE."""
        state = data.get('resourceState') or data.get('resource_state')
        if not state and str(data.get('eventType') or '').upper() == 'OBJECT_DELETE':
            state = NOT_EXISTS
        return cls(
            bucket=str(data.get('bucket') or ''),
            name=str(data.get('name') or ''),
            content_type=data.get('contentType') or data.get('content_type'),
            resource_state=state or 'exists',
        )


@dataclass(frozen=True)
class DataSnapshot:
    path: str
    value: Any = None

    def exists(self) -> bool:
        return self.value is not None


@dataclass
class Services:
    """Collaborators for one invocation."""
    store: Any
    fetch_object: Optional[Callable[[str, str], bytes]] = None
    csv_content_type: str = CSV_CONTENT_TYPE


def on_storage_object_change(obj: StorageObject, services: Services):
    if obj.content_type != services.csv_content_type:
        logger.info("storage: ignoring %s (content type %s)", obj.name, obj.content_type)
        return None
    if obj.resource_state == NOT_EXISTS:
        logger.info("storage: ignoring delete of %s", obj.name)
        return None
    if services.fetch_object is None:
        raise RuntimeError('No object fetcher configured for storage events')

    logger.info("storage: ingesting gs://%s/%s", obj.bucket, obj.name)
    raw = services.fetch_object(obj.bucket, obj.name)
    csv_text = raw.decode('utf-8') if isinstance(raw, bytes) else str(raw)
    return process_csv(csv_text, services.store)


def on_programmes_write(snapshot: DataSnapshot, services: Services):
    if not snapshot.exists():
        return None
    return rebuild_search_index(snapshot.value, services.store)


def on_user_created(user: AuthUser, services: Services):
    return provision_user(user, services.store)


Handler = Callable[[Any, Services], Any]


class EventDispatcher:
    """Explicit event type -> handler registry."""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def register(self, event_type: str, handler: Optional[Handler] = None):
        """Register `handler` for `event_type`; usable as a decorator."""
        if handler is None:
            def _decorator(fn: Handler) -> Handler:
                self._handlers[event_type].append(fn)
                return fn
            return _decorator
        self._handlers[event_type].append(handler)
        return handler

    def handlers(self, event_type: str) -> List[Handler]:
        return list(self._handlers.get(event_type, ()))

    def dispatch(self, event_type: str, payload: Any, services: Services) -> List[Any]:
        handlers = self.handlers(event_type)
        if not handlers:
            logger.warning("no handler registered for %s", event_type)
        return [handler(payload, services) for handler in handlers]


def build_dispatcher() -> EventDispatcher:
    dispatcher = EventDispatcher()
    dispatcher.register(STORAGE_OBJECT_CHANGE, on_storage_object_change)
    dispatcher.register(DATABASE_WRITE, on_programmes_write)
    dispatcher.register(USER_CREATED, on_user_created)
    return dispatcher


def watch_programmes(store, dispatcher: EventDispatcher, services_factory: Callable[[], Services]):
    """Dispatch database.write with the full current Programmes value on every change."""

    def _on_change(path: str) -> None:
        # Runs on the listener thread; an exception here would end the stream.
        try:
            services = services_factory()
            snapshot = DataSnapshot(path=path, value=services.store.get(path))
            dispatcher.dispatch(DATABASE_WRITE, snapshot, services)
        except Exception:
            logger.exception("database.write on %s failed", path)

    return store.listen(PROGRAMMES_PATH, _on_change)


def default_services() -> Services:
    """Services wired from Django settings: configured store and Cloud Storage fetcher."""
    from django.conf import settings

    from .storage import download_object, get_store

    return Services(
        store=get_store(),
        fetch_object=download_object,
        csv_content_type=getattr(settings, 'PROGRAMMES_CSV_CONTENT_TYPE', CSV_CONTENT_TYPE) or CSV_CONTENT_TYPE,
    )
