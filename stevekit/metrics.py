"""Request metrics for the proxy store, enabled through the environment."""

from __future__ import annotations

import os
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

METRICS_ENV = "CATTLE_PROMETHEUS_METRICS"

RESOURCE_LABEL = "resource"
METHOD_LABEL = "method"
CODE_LABEL = "code"


class APIError(Exception):
    """An error carrying an HTTP status code."""

    def __init__(self, status: int, message: str = "") -> None:
        super().__init__(message or f"API error {status}")
        self.status = status
        self.message = message


class _MetricVec:
    def __init__(self, subsystem: str, name: str, help: str, label_names: Sequence[str]) -> None:
        self.subsystem = subsystem
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._lock = threading.Lock()

    @property
    def fqname(self) -> str:
        return f"{self.subsystem}_{self.name}" if self.subsystem else self.name

    def _key(self, labels: Mapping[str, str]) -> tuple[str, ...]:
        if set(labels) != set(self.label_names):
            raise ValueError(
                f"{self.fqname}: expected labels {sorted(self.label_names)}, got {sorted(labels)}"
            )
        return tuple(labels[name] for name in self.label_names)


class CounterVec(_MetricVec):
    """A counter partitioned by label values."""

    def __init__(self, subsystem: str, name: str, help: str, label_names: Sequence[str]) -> None:
        super().__init__(subsystem, name, help, label_names)
        self._values: dict[tuple[str, ...], float] = {}

    def inc(self, labels: Mapping[str, str]) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + 1.0

    def value(self, labels: Mapping[str, str]) -> float:
        key = self._key(labels)
        with self._lock:
            return self._values.get(key, 0.0)


class HistogramVec(_MetricVec):
    """A record of observed values partitioned by label values."""

    def __init__(self, subsystem: str, name: str, help: str, label_names: Sequence[str]) -> None:
        super().__init__(subsystem, name, help, label_names)
        self._observations: dict[tuple[str, ...], list[float]] = {}

    def observe(self, labels: Mapping[str, str], value: float) -> None:
        key = self._key(labels)
        with self._lock:
            self._observations.setdefault(key, []).append(float(value))

    def observations(self, labels: Mapping[str, str]) -> list[float]:
        key = self._key(labels)
        with self._lock:
            return list(self._observations.get(key, ()))


_LABELS = (RESOURCE_LABEL, METHOD_LABEL, CODE_LABEL)

PROXY_TOTAL_RESPONSES = CounterVec("k8s_proxy", "total_requests", "Total count API requests", _LABELS)
K8S_CLIENT_RESPONSE_TIME = HistogramVec(
    "k8s_proxy", "client_request_time", "Request times in ms for k8s client from proxy store", _LABELS
)
PROXY_STORE_RESPONSE_TIME = HistogramVec(
    "k8s_proxy", "store_request_time", "Request times in ms for k8s proxy store", _LABELS
)

REGISTRY: list[_MetricVec] = []

_enabled = threading.Event()


def enable_metrics(enabled: bool) -> None:
    if enabled:
        _enabled.set()
    else:
        _enabled.clear()


def metrics_enabled() -> bool:
    return _enabled.is_set()


def register_from_env(environ: Mapping[str, str] | None = None) -> bool:
    """Enable and register the metrics when the environment asks for them."""
    env = os.environ if environ is None else environ
    if env.get(METRICS_ENV) != "true":
        return False
    enable_metrics(True)
    for collector in (PROXY_TOTAL_RESPONSES, K8S_CLIENT_RESPONSE_TIME, PROXY_STORE_RESPONSE_TIME):
        if collector not in REGISTRY:
            REGISTRY.append(collector)
    return True


@dataclass(frozen=True)
class MetricLogger:
    """Records metrics for one resource and HTTP method."""

    resource: str
    method: str

    def _labels(self, err: BaseException | None) -> dict[str, str]:
        return {
            RESOURCE_LABEL: self.resource,
            METHOD_LABEL: self.method,
            CODE_LABEL: self.api_error_code(err),
        }

    def inc_total_responses(self, err: BaseException | None) -> None:
        if metrics_enabled():
            PROXY_TOTAL_RESPONSES.inc(self._labels(err))

    def record_k8s_client_response_time(self, err: BaseException | None, value: float) -> None:
        if metrics_enabled():
            K8S_CLIENT_RESPONSE_TIME.observe(self._labels(err), value)

    def record_proxy_store_response_time(self, err: BaseException | None, value: float) -> None:
        if metrics_enabled():
            PROXY_STORE_RESPONSE_TIME.observe(self._labels(err), value)

    def api_error_code(self, err: BaseException | None) -> str:
        if err is None:
            return "201" if self.method == "POST" else "200"
        if isinstance(err, APIError):
            return str(err.status)
        return "500"


register_from_env()