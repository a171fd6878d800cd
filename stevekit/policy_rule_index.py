"""Resolves the RBAC grants held by a user or group."""

from __future__ import annotations

from typing import Protocol

from stevekit.access_set import ALL, Access, AccessSet
from stevekit.attributes import GroupResource
from stevekit.rbac import (
    RBAC_GROUP,
    ClusterRoleBinding,
    PolicyRule,
    RBACStore,
    RoleBinding,
    RoleRef,
    Subject,
)
from stevekit.role_revision import RoleRevisionIndex

_NULL = b"\x00"


class _Digest(Protocol):
    def update(self, data: bytes, /) -> None: ...


class PolicyRuleIndex:
    """Looks up bindings for a subject of one kind, ``User`` or ``Group``."""

    def __init__(self, user: bool, revisions: RoleRevisionIndex, rbac: RBACStore) -> None:
        self.kind = "User" if user else "Group"
        self.revisions = revisions
        self._rbac = rbac

    def _service_account_key(self, subject: Subject) -> str | None:
        if (
            subject.api_group == ""
            and self.kind == "User"
            and subject.kind == "ServiceAccount"
            and subject.namespace != ""
        ):
            return f"serviceaccount:{subject.namespace}:{subject.name}"
        return None

    def cluster_role_binding_subjects(self, binding: ClusterRoleBinding) -> list[str]:
        """Subject names under which the binding is indexed."""
        if binding.role_ref.kind != "ClusterRole":
            return []
        return self._subjects(binding.subjects)

    def role_binding_subjects(self, binding: RoleBinding) -> list[str]:
        """Subject names under which the binding is indexed."""
        return self._subjects(binding.subjects)

    def _subjects(self, subjects: list[Subject]) -> list[str]:
        result = []
        for subject in subjects:
            if subject.api_group == RBAC_GROUP and subject.kind == self.kind:
                result.append(subject.name)
            elif (sa_key := self._service_account_key(subject)) is not None:
                result.append(sa_key)
        return result

    def add_roles_to_hash(self, digest: _Digest, subject_name: str) -> None:
        """Feed the roles bound to the subject, with their revisions, into ``digest``."""
        for crb in self.cluster_role_bindings_for(subject_name):
            digest.update(crb.role_ref.name.encode())
            digest.update(self.revisions.role_revision("", crb.role_ref.name).encode())
            digest.update(_NULL)

        for rb in self.role_bindings_for(subject_name):
            if rb.role_ref.kind == "Role":
                digest.update(rb.role_ref.name.encode())
                digest.update(rb.namespace.encode())
                digest.update(self.revisions.role_revision(rb.namespace, rb.role_ref.name).encode())
                digest.update(_NULL)
            elif rb.role_ref.kind == "ClusterRole":
                digest.update(rb.role_ref.name.encode())
                digest.update(self.revisions.role_revision("", rb.role_ref.name).encode())
                digest.update(_NULL)

    def get(self, subject_name: str) -> AccessSet:
        """The access set granted to the subject by all its bindings."""
        result = AccessSet()
        for binding in self.role_bindings_for(subject_name):
            self._add_access(result, binding.namespace, binding.role_ref)
        for binding in self.cluster_role_bindings_for(subject_name):
            self._add_access(result, ALL, binding.role_ref)
        return result

    def _add_access(self, access_set: AccessSet, namespace: str, role_ref: RoleRef) -> None:
        for rule in self._get_rules(namespace, role_ref):
            names = rule.resource_names or [ALL]
            for group in rule.api_groups:
                for resource in rule.resources:
                    gr = GroupResource(group=group, resource=resource)
                    for resource_name in names:
                        for verb in rule.verbs:
                            access_set.add(verb, gr, Access(namespace, resource_name))

    def _get_rules(self, namespace: str, role_ref: RoleRef) -> list[PolicyRule]:
        try:
            if role_ref.kind == "ClusterRole":
                return self._rbac.get_cluster_role(role_ref.name).rules
            if role_ref.kind == "Role":
                return self._rbac.get_role(namespace, role_ref.name).rules
        except KeyError:
            return []
        return []

    def cluster_role_bindings_for(self, subject_name: str) -> list[ClusterRoleBinding]:
        """Cluster role bindings for the subject, sorted by name."""
        found = [
            b for b in self._rbac.cluster_role_bindings()
            if subject_name in self.cluster_role_binding_subjects(b)
        ]
        return sorted(found, key=lambda b: b.name)

    def role_bindings_for(self, subject_name: str) -> list[RoleBinding]:
        """Role bindings for the subject, sorted by UID."""
        found = [
            b for b in self._rbac.role_bindings()
            if subject_name in self.role_binding_subjects(b)
        ]
        return sorted(found, key=lambda b: b.uid)