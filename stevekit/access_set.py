"""Sets of RBAC grants, keyed by verb and group/resource."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from stevekit import attributes
from stevekit.attributes import APISchema, GroupResource

ALL = "*"


@dataclass(frozen=True)
class Access:
    """A grant on a namespace and resource name, either of which may be ``*``."""

    namespace: str
    resource_name: str

    def grants(self, namespace: str, name: str) -> bool:
        return self.namespace in (ALL, namespace) and self.resource_name in (ALL, name)


class AccessList(list):
    """A list of :class:`Access` grants."""

    def grants(self, namespace: str, name: str) -> bool:
        return any(access.grants(namespace, name) for access in self)


@dataclass
class Resources:
    """Resources granted within one namespace."""

    all: bool = False
    names: set[str] = field(default_factory=set)


class AccessListByVerb(dict):
    """Mapping of verb to the :class:`AccessList` granted for it."""

    def _for(self, verb: str) -> AccessList:
        return AccessList(self.get(verb) or ())

    def grants(self, verb: str, namespace: str, name: str) -> bool:
        return self._for(verb).grants(namespace, name)

    def all(self, verb: str) -> bool:
        return self.grants(verb, ALL, ALL)

    def granted(self, verb: str) -> dict[str, Resources]:
        """Resources granted for the verb, grouped by namespace.

        For ``list`` the individually named resources granted by ``get`` are included.
        """
        result: dict[str, Resources] = {}
        for access in self._for(verb):
            resources = result.setdefault(access.namespace, Resources())
            if access.resource_name == ALL:
                resources.all = True
            else:
                resources.names.add(access.resource_name)

        if verb == "list":
            for access in self._for("get"):
                if access.resource_name == ALL or not access.resource_name:
                    continue
                result.setdefault(access.namespace, Resources()).names.add(access.resource_name)
        return result

    def any_verb(self, *args: str) -> bool:
        return any(self.get(verb) for verb in args)


class AccessSet:
    """All grants a subject holds, indexed by (verb, group/resource)."""

    def __init__(self, id: str = "") -> None:
        self.id = id
        self._set: dict[tuple[str, GroupResource], set[Access]] = {}

    def __repr__(self) -> str:
        return f"AccessSet(id={self.id!r}, entries={len(self._set)})"

    def namespaces(self) -> list[str]:
        """Sorted namespaces named by any get or list grant."""
        found = {
            access.namespace
            for (verb, _), accesses in self._set.items()
            if verb in ("get", "list")
            for access in accesses
            if access.namespace != ALL
        }
        return sorted(found)

    def merge(self, other: AccessSet) -> None:
        for key, accesses in other._set.items():
            self._set.setdefault(key, set()).update(accesses)

    def _matching(self, verb: str, gr: GroupResource) -> Iterator[Access]:
        for v in (ALL, verb):
            for g in (ALL, gr.group):
                for r in (ALL, gr.resource):
                    yield from self._set.get((v, GroupResource(group=g, resource=r)), ())

    def grants(self, verb: str, gr: GroupResource, namespace: str, name: str) -> bool:
        return any(access.grants(namespace, name) for access in self._matching(verb, gr))

    def access_list_for(self, verb: str, gr: GroupResource) -> AccessList:
        return AccessList(dict.fromkeys(self._matching(verb, gr)))

    def add(self, verb: str, gr: GroupResource, access: Access) -> None:
        self._set.setdefault((verb, gr), set()).add(access)


def get_access_list_map(s: APISchema | None) -> AccessListByVerb:
    """The access list stored on a schema, or an empty one."""
    if s is None:
        return AccessListByVerb()
    value = attributes.access(s)
    return value if isinstance(value, AccessListByVerb) else AccessListByVerb()