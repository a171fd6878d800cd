from stevekit.rbac import ClusterRole, RBACStore, Role
from stevekit.role_revision import RoleRevisionIndex


def test_unknown_role_has_empty_revision():
    index = RoleRevisionIndex()
    assert index.role_revision("dev", "reader") == ""


def test_role_change_stores_revision():
    index = RoleRevisionIndex()
    role = Role("reader", "dev", resource_version="7")
    assert index.on_role_changed("dev/reader", role) is role
    assert index.role_revision("dev", "reader") == "7"
    assert index.role_revision("", "reader") == ""


def test_role_delete_uses_key():
    index = RoleRevisionIndex()
    index.on_role_changed("dev/reader", Role("reader", "dev", resource_version="7"))
    assert index.on_role_changed("dev/reader", None) is None
    assert index.role_revision("dev", "reader") == ""


def test_cluster_role_change_and_delete():
    index = RoleRevisionIndex()
    role = ClusterRole("admin", resource_version="12")
    assert index.on_cluster_role_changed("admin", role) is role
    assert index.role_revision("", "admin") == "12"
    index.on_cluster_role_changed("admin", None)
    assert index.role_revision("", "admin") == ""


def test_watch_follows_store():
    store = RBACStore()
    store.add_cluster_role(ClusterRole("admin", resource_version="1"))
    index = RoleRevisionIndex()
    index.watch(store)
    assert index.role_revision("", "admin") == "1"

    store.add_role(Role("reader", "dev", resource_version="4"))
    assert index.role_revision("dev", "reader") == "4"

    store.add_cluster_role(ClusterRole("admin", resource_version="2"))
    assert index.role_revision("", "admin") == "2"

    store.remove_role("dev", "reader")
    assert index.role_revision("dev", "reader") == ""