"""Typed accessors for the free-form attribute map carried by API schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class GroupVersionKind:
    group: str = ""
    version: str = ""
    kind: str = ""


@dataclass(frozen=True)
class GroupVersionResource:
    group: str = ""
    version: str = ""
    resource: str = ""


@dataclass(frozen=True)
class GroupResource:
    group: str = ""
    resource: str = ""


@dataclass
class APIResource:
    """A resource as reported by API discovery."""

    name: str = ""
    verbs: list[str] = field(default_factory=list)
    namespaced: bool = False


@dataclass
class APISchema:
    """An API schema with an open-ended attribute map."""

    id: str = ""
    plural_name: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)


def _to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return _to_string(value).lower() == "true"


def _to_string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [_to_string(item) for item in value]
    return []


def _attrs(s: APISchema) -> dict[str, Any]:
    if s.attributes is None:
        s.attributes = {}
    return s.attributes


def _str(s: APISchema, key: str) -> str:
    return _to_string(_attrs(s).get(key))


def _set_val(s: APISchema, key: str, value: Any) -> None:
    _attrs(s)[key] = value


def namespaced(s: APISchema | None) -> bool:
    if s is None:
        return False
    return _to_bool(_attrs(s).get("namespaced"))


def set_namespaced(s: APISchema, value: bool) -> None:
    _set_val(s, "namespaced", value)


def group(s: APISchema) -> str:
    return _str(s, "group")


def set_group(s: APISchema, value: str) -> None:
    _set_val(s, "group", value)


def version(s: APISchema) -> str:
    return _str(s, "version")


def set_version(s: APISchema, value: str) -> None:
    _set_val(s, "version", value)


def resource(s: APISchema) -> str:
    return _str(s, "resource")


def set_resource(s: APISchema, value: str) -> None:
    _set_val(s, "resource", value)


def kind(s: APISchema) -> str:
    return _str(s, "kind")


def set_kind(s: APISchema, value: str) -> None:
    _set_val(s, "kind", value)


def gvk(s: APISchema) -> GroupVersionKind:
    return GroupVersionKind(group=group(s), version=version(s), kind=kind(s))


def set_gvk(s: APISchema, value: GroupVersionKind) -> None:
    set_group(s, value.group)
    set_version(s, value.version)
    set_kind(s, value.kind)


def table(s: APISchema) -> bool:
    return _str(s, "table") != "false"


def set_table(s: APISchema, value: bool) -> None:
    _set_val(s, "table", _to_string(bool(value)))


def gvr(s: APISchema) -> GroupVersionResource:
    return GroupVersionResource(group=group(s), version=version(s), resource=resource(s))


def set_gvr(s: APISchema, value: GroupVersionResource) -> None:
    set_group(s, value.group)
    set_version(s, value.version)
    set_resource(s, value.resource)


def verbs(s: APISchema) -> list[str]:
    return _to_string_list(_attrs(s).get("verbs"))


def set_verbs(s: APISchema, value: list[str]) -> None:
    _set_val(s, "verbs", list(value))


def gr(s: APISchema) -> GroupResource:
    return GroupResource(group=group(s), resource=resource(s))


def set_gr(s: APISchema, value: GroupResource) -> None:
    set_group(s, value.group)
    set_resource(s, value.resource)


def access(s: APISchema) -> Any:
    return _attrs(s).get("access")


def set_access(s: APISchema, value: Any) -> None:
    _set_val(s, "access", value)


def add_disallow_methods(s: APISchema, *args: str) -> None:
    """Mark the given HTTP methods as disallowed for the schema."""
    attrs = _attrs(s)
    data = attrs.get("disallowMethods")
    if not isinstance(data, dict):
        data = {}
        attrs["disallowMethods"] = data
    for method in args:
        data[method] = True


def disallow_methods(s: APISchema) -> dict[str, bool] | None:
    data = _attrs(s).get("disallowMethods")
    return data if isinstance(data, dict) else None


def set_api_resource(s: APISchema, resource: APIResource) -> None:
    set_resource(s, resource.name)
    set_verbs(s, resource.verbs)
    set_namespaced(s, resource.namespaced)


def columns(s: APISchema) -> Any:
    return _attrs(s).get("columns")


def set_columns(s: APISchema, value: Any) -> None:
    _set_val(s, "columns", value)


def preferred_version(s: APISchema) -> str:
    return _str(s, "preferredVersion")


def set_preferred_version(s: APISchema, value: str) -> None:
    _set_val(s, "preferredVersion", value)


def preferred_group(s: APISchema) -> str:
    return _str(s, "preferredGroup")


def set_preferred_group(s: APISchema, value: str) -> None:
    _set_val(s, "preferredGroup", value)