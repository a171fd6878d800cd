"""Tracks the resource version of every Role and ClusterRole."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stevekit.rbac import ClusterRole, RBACStore, Role


def _split(key: str, sep: str = "/") -> tuple[str, str]:
    first, _, rest = key.partition(sep)
    return first, rest


class RoleRevisionIndex:
    """Maps (namespace, name) of roles to their latest resource version."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._revisions: dict[tuple[str, str], str] = {}

    def role_revision(self, namespace: str, name: str) -> str:
        """The known revision of the role, or an empty string."""
        with self._lock:
            return self._revisions.get((namespace, name), "")

    def on_cluster_role_changed(self, key: str, role: ClusterRole | None) -> ClusterRole | None:
        with self._lock:
            if role is None:
                self._revisions.pop(("", key), None)
            else:
                self._revisions[("", key)] = role.resource_version
        return role

    def on_role_changed(self, key: str, role: Role | None) -> Role | None:
        with self._lock:
            if role is None:
                namespace, name = _split(key)
                self._revisions.pop((namespace, name), None)
            else:
                self._revisions[(role.namespace, role.name)] = role.resource_version
        return role

    def watch(self, rbac: RBACStore) -> None:
        """Follow role and cluster role changes in the store."""
        rbac.on_role_change(self.on_role_changed)
        rbac.on_cluster_role_change(self.on_cluster_role_changed)