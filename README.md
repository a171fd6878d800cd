# stevekit

Building blocks for an API server that fronts Kubernetes resources:
schema attributes, RBAC access evaluation, an in-memory object cache,
request metrics and debug-logging settings. The package has no runtime
dependencies.

## Modules

- **`stevekit.attributes`**: the `APISchema`, `APIResource`,
  `GroupVersionKind`, `GroupVersionResource` and `GroupResource` types,
  and functions that read and write a schema's attributes: `group`,
  `version`, `kind`, `resource`, `gvk`, `gvr`, `gr`, `namespaced`,
  `verbs`, `table`, `access`, `columns`, `preferred_group`,
  `preferred_version`, `add_disallow_methods` / `disallow_methods`,
  `set_api_resource`, and a `set_...` for each.
- **`stevekit.access_set`**: `Access`, `AccessList`, `AccessListByVerb`,
  `Resources` and `AccessSet`, which answer whether a verb on a
  group/resource is granted in a namespace for a given name. `*` matches
  any verb, group, resource, namespace or name.
  `get_access_list_map(schema)` returns the `AccessListByVerb` stored on
  a schema, or an empty one.
- **`stevekit.rbac`**: `Subject`, `RoleRef`, `PolicyRule`, `Role`,
  `ClusterRole`, `RoleBinding`, `ClusterRoleBinding`, `UserInfo`, and
  `RBACStore`, an in-memory store of roles and bindings that calls
  subscribers (`on_role_change`, `on_cluster_role_change`) when roles are
  added or removed.
- **`stevekit.role_revision`**: `RoleRevisionIndex`, which follows the
  resource version of every role in an `RBACStore`.
- **`stevekit.policy_rule_index`**: `PolicyRuleIndex`, which finds the
  bindings of a user or group (service accounts included, as
  `serviceaccount:<namespace>:<name>`) and turns them into an `AccessSet`.
- **`stevekit.access_store`**: `AccessStore`, which combines a user's own
  and its groups' grants. With `cache_results=True`, results are kept in
  a 50-entry LRU cache for 24 hours, keyed by a SHA-256 of the user's
  bound roles and their revisions (`cache_key`), so a role change yields
  a new key. `purge_user_data(id)` drops a cached entry.
- **`stevekit.cluster_cache`**: `ClusterCache`, which keeps an
  `ObjectStore` for every schema whose verbs include both `list` and
  `watch`, applies `Event`s passed to `dispatch`, and calls add, remove
  and change handlers on a worker thread. A handler is dropped once the
  `threading.Event` it was registered with is set.
- **`stevekit.metrics`**: `MetricLogger`, which records request counts
  and timings in `PROXY_TOTAL_RESPONSES`, `K8S_CLIENT_RESPONSE_TIME` and
  `PROXY_STORE_RESPONSE_TIME` only while metrics are enabled. Importing
  the module enables them when `CATTLE_PROMETHEUS_METRICS=true`;
  `enable_metrics(True)` does so directly. The status code label is
  `200` (or `201` for `POST`) on success, the status of an `APIError`,
  or `500` for any other error.
- **`stevekit.debug`**: `DebugConfig`, `add_flags(parser)` for
  `--debug` and `--debug-level` (default 7), and `config_from_args`.
  `setup_debug()` sets the root logger to `DEBUG` when debugging is on
  and returns the verbosity in effect.

## Installing

```
pip install .
```

## Examples

Checking a grant directly:

```python
from stevekit.access_set import Access, AccessSet
from stevekit.attributes import GroupResource

pods = GroupResource(group="", resource="pods")
access = AccessSet()
access.add("get", pods, Access(namespace="default", resource_name="*"))

access.grants("get", pods, "default", "web")      # True
access.grants("get", pods, "kube-system", "web")  # False
access.namespaces()                               # ["default"]
```

Resolving a user's access from roles and bindings:

```python
from stevekit.access_store import AccessStore
from stevekit.attributes import GroupResource
from stevekit.rbac import (
    RBAC_GROUP, ClusterRole, ClusterRoleBinding, PolicyRule,
    RBACStore, RoleRef, Subject, UserInfo,
)

rbac = RBACStore()
rbac.add_cluster_role(ClusterRole(
    name="pod-reader",
    rules=[PolicyRule(verbs=["get", "list"], api_groups=[""], resources=["pods"])],
    resource_version="1",
))
rbac.add_cluster_role_binding(ClusterRoleBinding(
    name="alice-reads-pods",
    role_ref=RoleRef(kind="ClusterRole", name="pod-reader"),
    subjects=[Subject(kind="User", name="alice", api_group=RBAC_GROUP)],
))

store = AccessStore(rbac, cache_results=True)
access = store.access_for(UserInfo("alice"))
access.grants("list", GroupResource(group="", resource="pods"), "default", "")  # True
```

Caching objects and reacting to them:

```python
import threading

from stevekit import attributes
from stevekit.attributes import APISchema, GroupVersionKind
from stevekit.cluster_cache import ClusterCache, Event

pod = GroupVersionKind(group="", version="v1", kind="Pod")
schema = APISchema(id="pod")
attributes.set_gvk(schema, pod)
attributes.set_verbs(schema, ["list", "watch"])

stop = threading.Event()
with ClusterCache() as cache:
    cache.on_schemas([schema])
    cache.on_add(stop, lambda gvk, key, obj: print("added", key))
    cache.dispatch(Event(gvk=pod, obj={"metadata": {"namespace": "default", "name": "web"}}, add=True))
    cache.get(pod, "default", "web")  # the object dispatched above
```

## What this package does not do

- It does not connect to a Kubernetes API server. Roles and bindings go
  into an `RBACStore`, and objects into a `ClusterCache` through
  `dispatch` or its `loader` callable, by the calling code.
- It serves no HTTP API and installs no command.
- Metrics are kept in process memory; nothing exports them.

## Running the tests

```
pip install .[test]
pytest
```