"""RBAC object types and an in-memory store of roles and bindings."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field

RBAC_GROUP = "rbac.authorization.k8s.io"


@dataclass(frozen=True)
class Subject:
    """The user, group or service account a binding applies to."""

    kind: str
    name: str
    api_group: str = ""
    namespace: str = ""


@dataclass(frozen=True)
class RoleRef:
    """Reference from a binding to a Role or ClusterRole."""

    kind: str
    name: str
    api_group: str = RBAC_GROUP


@dataclass
class PolicyRule:
    verbs: list[str] = field(default_factory=list)
    api_groups: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    resource_names: list[str] = field(default_factory=list)


@dataclass
class Role:
    name: str
    namespace: str
    rules: list[PolicyRule] = field(default_factory=list)
    resource_version: str = ""


@dataclass
class ClusterRole:
    name: str
    rules: list[PolicyRule] = field(default_factory=list)
    resource_version: str = ""


@dataclass
class RoleBinding:
    name: str
    namespace: str
    role_ref: RoleRef
    subjects: list[Subject] = field(default_factory=list)
    uid: str = ""


@dataclass
class ClusterRoleBinding:
    name: str
    role_ref: RoleRef
    subjects: list[Subject] = field(default_factory=list)
    uid: str = ""


@dataclass(frozen=True)
class UserInfo:
    """An authenticated user: a name and the groups it belongs to."""

    name: str
    groups: tuple[str, ...] = ()
    uid: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "groups", tuple(self.groups))


RoleHandler = Callable[[str, "Role | None"], object]
ClusterRoleHandler = Callable[[str, "ClusterRole | None"], object]


def _role_key(namespace: str, name: str) -> str:
    return f"{namespace}/{name}" if namespace else name


class RBACStore:
    """Holds roles and bindings and tells subscribers when roles change."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._roles: dict[tuple[str, str], Role] = {}
        self._cluster_roles: dict[str, ClusterRole] = {}
        self._role_bindings: dict[tuple[str, str], RoleBinding] = {}
        self._cluster_role_bindings: dict[str, ClusterRoleBinding] = {}
        self._role_handlers: list[RoleHandler] = []
        self._cluster_role_handlers: list[ClusterRoleHandler] = []

    def add_role(self, role: Role) -> None:
        with self._lock:
            self._roles[(role.namespace, role.name)] = role
            handlers = list(self._role_handlers)
        for handler in handlers:
            handler(_role_key(role.namespace, role.name), role)

    def remove_role(self, namespace: str, name: str) -> None:
        with self._lock:
            if (namespace, name) not in self._roles:
                raise KeyError(f"role {_role_key(namespace, name)} not found")
            del self._roles[(namespace, name)]
            handlers = list(self._role_handlers)
        for handler in handlers:
            handler(_role_key(namespace, name), None)

    def add_cluster_role(self, role: ClusterRole) -> None:
        with self._lock:
            self._cluster_roles[role.name] = role
            handlers = list(self._cluster_role_handlers)
        for handler in handlers:
            handler(role.name, role)

    def remove_cluster_role(self, name: str) -> None:
        with self._lock:
            if name not in self._cluster_roles:
                raise KeyError(f"cluster role {name} not found")
            del self._cluster_roles[name]
            handlers = list(self._cluster_role_handlers)
        for handler in handlers:
            handler(name, None)

    def add_role_binding(self, binding: RoleBinding) -> None:
        with self._lock:
            self._role_bindings[(binding.namespace, binding.name)] = binding

    def add_cluster_role_binding(self, binding: ClusterRoleBinding) -> None:
        with self._lock:
            self._cluster_role_bindings[binding.name] = binding

    def get_role(self, namespace: str, name: str) -> Role:
        with self._lock:
            try:
                return self._roles[(namespace, name)]
            except KeyError:
                raise KeyError(f"role {_role_key(namespace, name)} not found") from None

    def get_cluster_role(self, name: str) -> ClusterRole:
        with self._lock:
            try:
                return self._cluster_roles[name]
            except KeyError:
                raise KeyError(f"cluster role {name} not found") from None

    def role_bindings(self) -> list[RoleBinding]:
        with self._lock:
            return list(self._role_bindings.values())

    def cluster_role_bindings(self) -> list[ClusterRoleBinding]:
        with self._lock:
            return list(self._cluster_role_bindings.values())

    def on_role_change(self, handler: RoleHandler) -> None:
        """Subscribe to role changes; existing roles are delivered at once."""
        with self._lock:
            self._role_handlers.append(handler)
            existing = list(self._roles.values())
        for role in existing:
            handler(_role_key(role.namespace, role.name), role)

    def on_cluster_role_change(self, handler: ClusterRoleHandler) -> None:
        """Subscribe to cluster role changes; existing ones are delivered at once."""
        with self._lock:
            self._cluster_role_handlers.append(handler)
            existing = list(self._cluster_roles.values())
        for role in existing:
            handler(role.name, role)