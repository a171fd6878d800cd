"""Computes and caches the access set of a user."""

from __future__ import annotations

import hashlib
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from stevekit.access_set import AccessSet
from stevekit.policy_rule_index import PolicyRuleIndex
from stevekit.rbac import RBACStore, UserInfo
from stevekit.role_revision import RoleRevisionIndex

_CACHE_SIZE = 50
_CACHE_TTL = 24 * 60 * 60.0


class _LRUExpireCache:
    """A bounded LRU cache whose entries expire after a time-to-live."""

    def __init__(self, max_size: int, clock: Callable[[], float]) -> None:
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()

    def get(self, key: str) -> tuple[Any, bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            value, expires = entry
            if self._clock() >= expires:
                del self._entries[key]
                return None, False
            self._entries.move_to_end(key)
            return value, True

    def add(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)


class AccessStore:
    """Looks up what a user may do, from its own and its groups' bindings."""

    def __init__(
        self,
        rbac: RBACStore,
        cache_results: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        revisions = RoleRevisionIndex()
        revisions.watch(rbac)
        self._users = PolicyRuleIndex(True, revisions, rbac)
        self._groups = PolicyRuleIndex(False, revisions, rbac)
        self._cache = _LRUExpireCache(_CACHE_SIZE, clock) if cache_results else None

    def access_for(self, user: UserInfo) -> AccessSet:
        cache_key = ""
        if self._cache is not None:
            cache_key = self.cache_key(user)
            cached, ok = self._cache.get(cache_key)
            if ok:
                return cached

        result = self._users.get(user.name)
        for group in user.groups:
            result.merge(self._groups.get(group))

        if self._cache is not None:
            result.id = cache_key
            self._cache.add(cache_key, result, _CACHE_TTL)
        return result

    def purge_user_data(self, id: str) -> None:
        """Drop a cached access set by its id."""
        if self._cache is not None:
            self._cache.remove(id)

    def cache_key(self, user: UserInfo) -> str:
        """Hex digest of the roles, and their revisions, bound to the user and its groups."""
        digest = hashlib.sha256()
        self._users.add_roles_to_hash(digest, user.name)
        for group in user.groups:
            self._groups.add_roles_to_hash(digest, group)
        return digest.hexdigest()