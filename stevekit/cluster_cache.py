"""An in-memory cache of cluster objects, one store per watched kind."""

from __future__ import annotations

import itertools
import logging
import queue
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from stevekit import attributes
from stevekit.attributes import APISchema, GroupVersionKind, GroupVersionResource

logger = logging.getLogger(__name__)

Handler = Callable[[GroupVersionKind, str, Any], None]
ChangeHandler = Callable[[GroupVersionKind, str, Any, Any], None]
Loader = Callable[[GroupVersionResource], Iterable[Any]]


class HandlerErrors(Exception):
    """Several handlers failed for the same event."""

    def __init__(self, errors: Iterable[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(str(err) for err in self.errors))


class CancelCollection:
    """Items that stay listed until their cancel event is set."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._items: dict[int, tuple[threading.Event, Any]] = {}

    def add(self, cancel_event: threading.Event, obj: Any) -> None:
        with self._lock:
            self._items[next(self._ids)] = (cancel_event, obj)

    def list(self) -> list[Any]:
        with self._lock:
            for key in [k for k, (event, _) in self._items.items() if event.is_set()]:
                del self._items[key]
            return [obj for _, obj in self._items.values()]


@dataclass(frozen=True)
class Event:
    """An add, change or removal of an object of one kind."""

    gvk: GroupVersionKind
    obj: Any
    add: bool = False
    old_obj: Any = None


def to_key(obj: Any) -> str:
    """The ``namespace/name`` key of an object, or its name when cluster scoped."""
    if isinstance(obj, Mapping):
        meta = obj.get("metadata")
        if not isinstance(meta, Mapping):
            return ""
        namespace = meta.get("namespace") or ""
        name = meta.get("name") or ""
    else:
        name = getattr(obj, "name", None)
        if name is None:
            return ""
        namespace = getattr(obj, "namespace", "") or ""
    return f"{namespace}/{name}" if namespace else name


class ObjectStore:
    """Objects of one kind, keyed by :func:`to_key`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, Any] = {}

    def add(self, obj: Any) -> None:
        with self._lock:
            self._items[to_key(obj)] = obj

    def update(self, obj: Any) -> None:
        self.add(obj)

    def delete(self, obj: Any) -> None:
        with self._lock:
            self._items.pop(to_key(obj), None)

    def get_by_key(self, key: str) -> Any:
        with self._lock:
            return self._items.get(key)

    def list(self) -> list[Any]:
        with self._lock:
            return list(self._items.values())


def valid_schema(schema: APISchema) -> bool:
    """Whether the schema's resource can be both listed and watched."""
    verbs = set(attributes.verbs(schema))
    return "list" in verbs and "watch" in verbs


def call_all(
    handlers: Iterable[Callable[..., Any]],
    gvk: GroupVersionKind,
    key: str,
    obj: Any,
    old_obj: Any,
) -> Any:
    """Call every handler, then raise what they raised.

    Change handlers receive ``old_obj`` as well; they are called whenever it is given.
    """
    errors: list[Exception] = []
    for handler in handlers:
        try:
            if old_obj is not None:
                handler(gvk, key, obj, old_obj)
            else:
                handler(gvk, key, obj)
        except Exception as err:  # noqa: BLE001 - collected and re-raised
            errors.append(err)
    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise HandlerErrors(errors)
    return obj


@dataclass
class _Watcher:
    gvk: GroupVersionKind
    gvr: GroupVersionResource
    store: ObjectStore = field(default_factory=ObjectStore)
    cancel: threading.Event = field(default_factory=threading.Event)


class ClusterCache:
    """Keeps a store for every listable, watchable schema and notifies handlers of events.

    Events are applied to the stores at once; handlers run on a worker thread.
    ``loader``, when given, supplies the initial objects of a newly watched resource.
    """

    def __init__(self, loader: Loader | None = None) -> None:
        self._lock = threading.RLock()
        self._loader = loader
        self._watchers: dict[GroupVersionKind, _Watcher] = {}
        self._queue: queue.Queue[Event | None] = queue.Queue()
        self._add_handlers = CancelCollection()
        self._remove_handlers = CancelCollection()
        self._change_handlers = CancelCollection()
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="cluster-cache", daemon=True)
        self._worker.start()

    def __enter__(self) -> ClusterCache:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def on_add(self, cancel_event: threading.Event, handler: Handler) -> None:
        self._add_handlers.add(cancel_event, handler)

    def on_remove(self, cancel_event: threading.Event, handler: Handler) -> None:
        self._remove_handlers.add(cancel_event, handler)

    def on_change(self, cancel_event: threading.Event, handler: ChangeHandler) -> None:
        self._change_handlers.add(cancel_event, handler)

    def on_schemas(self, schemas: Mapping[str, APISchema] | Iterable[APISchema]) -> None:
        """Watch every valid schema and stop watching the kinds no longer present."""
        items = schemas.values() if isinstance(schemas, Mapping) else schemas
        with self._lock:
            gvks: set[GroupVersionKind] = set()
            started: list[_Watcher] = []
            for schema in items:
                if not valid_schema(schema):
                    continue
                gvk = attributes.gvk(schema)
                gvks.add(gvk)
                if gvk in self._watchers:
                    continue
                watcher = _Watcher(gvk=gvk, gvr=attributes.gvr(schema))
                self._watchers[gvk] = watcher
                started.append(watcher)
                logger.info("Watching metadata for %s", gvk)

            for gvk in [g for g in self._watchers if g not in gvks]:
                logger.info("Stopping metadata watch on %s", gvk)
                self._watchers.pop(gvk).cancel.set()

            for watcher in started:
                self._sync(watcher)

    def _sync(self, watcher: _Watcher) -> None:
        if self._loader is None:
            return
        try:
            objects = list(self._loader(watcher.gvr))
        except Exception as err:  # noqa: BLE001 - the watch is dropped instead
            logger.error("failed to sync cache for %s: %s", watcher.gvk, err)
            watcher.cancel.set()
            self._watchers.pop(watcher.gvk, None)
            return
        for obj in objects:
            self.dispatch(Event(gvk=watcher.gvk, obj=obj, add=True))

    def get(self, gvk: GroupVersionKind, namespace: str, name: str) -> Any:
        """The cached object, or None when it or its kind is unknown."""
        key = f"{namespace}/{name}" if namespace else name
        with self._lock:
            watcher = self._watchers.get(gvk)
            if watcher is None:
                return None
            return watcher.store.get_by_key(key)

    def list(self, gvk: GroupVersionKind) -> list[Any]:
        with self._lock:
            watcher = self._watchers.get(gvk)
            return watcher.store.list() if watcher is not None else []

    def dispatch(self, event: Event) -> bool:
        """Apply an event to its kind's store and queue it for handlers.

        Returns False when the kind is not watched.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("cluster cache is closed")
            watcher = self._watchers.get(event.gvk)
            if watcher is None:
                return False
            if event.old_obj is not None:
                watcher.store.update(event.obj)
            elif event.add:
                watcher.store.add(event.obj)
            else:
                watcher.store.delete(event.obj)
            self._queue.put(event)
        return True

    def close(self) -> None:
        """Stop all watches and wait for queued events to be handled."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(None)
        self._worker.join()
        with self._lock:
            for watcher in self._watchers.values():
                watcher.cancel.set()
            self._watchers.clear()

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            if event is None:
                return
            self._handle(event)

    def _handle(self, event: Event) -> None:
        with self._lock:
            if event.gvk not in self._watchers:
                return
        key = to_key(event.obj)
        if event.old_obj is not None:
            handlers, what = self._change_handlers.list(), "change"
        elif event.add:
            handlers, what = self._add_handlers.list(), "add"
        else:
            handlers, what = self._remove_handlers.list(), "remove"
        try:
            call_all(handlers, event.gvk, key, event.obj, event.old_obj)
        except Exception as err:  # noqa: BLE001 - logged, the worker carries on
            logger.error("failed to handle %s event: %s", what, err)