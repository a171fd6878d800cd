import hashlib

from stevekit.access_set import ALL
from stevekit.attributes import GroupResource
from stevekit.policy_rule_index import PolicyRuleIndex
from stevekit.rbac import (
    RBAC_GROUP,
    ClusterRole,
    ClusterRoleBinding,
    PolicyRule,
    RBACStore,
    Role,
    RoleBinding,
    RoleRef,
    Subject,
)
from stevekit.role_revision import RoleRevisionIndex

PODS = GroupResource(group="", resource="pods")


def _user(name):
    return Subject("User", name, api_group=RBAC_GROUP)


def _group(name):
    return Subject("Group", name, api_group=RBAC_GROUP)


def _setup():
    store = RBACStore()
    revisions = RoleRevisionIndex()
    revisions.watch(store)
    return store, revisions


def test_cluster_binding_subjects_by_kind():
    store, revisions = _setup()
    users = PolicyRuleIndex(True, revisions, store)
    groups = PolicyRuleIndex(False, revisions, store)
    sa = Subject("ServiceAccount", "builder", namespace="ci")
    binding = ClusterRoleBinding("b", RoleRef("ClusterRole", "admin"), [_user("alice"), _group("devs"), sa])
    assert users.cluster_role_binding_subjects(binding) == ["alice", "serviceaccount:ci:builder"]
    assert groups.cluster_role_binding_subjects(binding) == ["devs"]


def test_cluster_binding_to_role_is_ignored():
    store, revisions = _setup()
    users = PolicyRuleIndex(True, revisions, store)
    binding = ClusterRoleBinding("b", RoleRef("Role", "admin"), [_user("alice")])
    assert users.cluster_role_binding_subjects(binding) == []


def test_service_account_needs_namespace():
    store, revisions = _setup()
    users = PolicyRuleIndex(True, revisions, store)
    binding = RoleBinding("b", "ci", RoleRef("Role", "r"), [Subject("ServiceAccount", "builder")])
    assert users.role_binding_subjects(binding) == []


def test_role_binding_grants_only_in_namespace():
    store, revisions = _setup()
    store.add_role(Role("reader", "dev", [PolicyRule(["get"], [""], ["pods"])]))
    store.add_role_binding(RoleBinding("b", "dev", RoleRef("Role", "reader"), [_user("alice")]))
    access = PolicyRuleIndex(True, revisions, store).get("alice")
    assert access.grants("get", PODS, "dev", "web")
    assert not access.grants("get", PODS, "prod", "web")
    assert not access.grants("delete", PODS, "dev", "web")
    assert access.namespaces() == ["dev"]


def test_cluster_binding_grants_everywhere():
    store, revisions = _setup()
    store.add_cluster_role(ClusterRole("viewer", [PolicyRule(["list"], [""], ["pods"])]))
    store.add_cluster_role_binding(ClusterRoleBinding("b", RoleRef("ClusterRole", "viewer"), [_group("devs")]))
    access = PolicyRuleIndex(False, revisions, store).get("devs")
    assert access.grants("list", PODS, "anywhere", "anything")
    assert PolicyRuleIndex(True, revisions, store).get("devs").grants("list", PODS, "x", "y") is False


def test_resource_names_restrict_grant():
    store, revisions = _setup()
    store.add_cluster_role(ClusterRole("one", [PolicyRule(["get"], [""], ["pods"], ["web"])]))
    store.add_role_binding(RoleBinding("b", "dev", RoleRef("ClusterRole", "one"), [_user("alice")]))
    access = PolicyRuleIndex(True, revisions, store).get("alice")
    assert access.grants("get", PODS, "dev", "web")
    assert not access.grants("get", PODS, "dev", "db")
    names = {a.resource_name for a in access.access_list_for("get", PODS)}
    assert names == {"web"}
    assert ALL not in names


def test_missing_role_grants_nothing():
    store, revisions = _setup()
    store.add_cluster_role_binding(ClusterRoleBinding("b", RoleRef("ClusterRole", "gone"), [_user("alice")]))
    access = PolicyRuleIndex(True, revisions, store).get("alice")
    assert access.access_list_for("get", PODS) == []


def test_bindings_sorted():
    store, revisions = _setup()
    for name in ("c", "a", "b"):
        store.add_cluster_role_binding(ClusterRoleBinding(name, RoleRef("ClusterRole", "r"), [_user("alice")]))
    for name, uid in (("x", "3"), ("y", "1"), ("z", "2")):
        store.add_role_binding(RoleBinding(name, "dev", RoleRef("Role", "r"), [_user("alice")], uid=uid))
    index = PolicyRuleIndex(True, revisions, store)
    assert [b.name for b in index.cluster_role_bindings_for("alice")] == ["a", "b", "c"]
    assert [b.uid for b in index.role_bindings_for("alice")] == ["1", "2", "3"]


def _hash(index, subject):
    digest = hashlib.sha256()
    index.add_roles_to_hash(digest, subject)
    return digest.hexdigest()


def test_hash_follows_revisions():
    store, revisions = _setup()
    store.add_cluster_role(ClusterRole("viewer", resource_version="1"))
    store.add_cluster_role_binding(ClusterRoleBinding("b", RoleRef("ClusterRole", "viewer"), [_user("alice")]))
    index = PolicyRuleIndex(True, revisions, store)
    first = _hash(index, "alice")
    assert _hash(index, "alice") == first
    store.add_cluster_role(ClusterRole("viewer", resource_version="2"))
    assert _hash(index, "alice") != first


def test_hash_of_unbound_subject_is_empty_digest():
    store, revisions = _setup()
    index = PolicyRuleIndex(True, revisions, store)
    assert _hash(index, "nobody") == hashlib.sha256().hexdigest()