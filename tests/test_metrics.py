import pytest

from stevekit import metrics
from stevekit.metrics import (
    APIError,
    CounterVec,
    HistogramVec,
    MetricLogger,
    enable_metrics,
    metrics_enabled,
    register_from_env,
)


@pytest.fixture(autouse=True)
def _restore_enabled():
    before = metrics_enabled()
    yield
    enable_metrics(before)


def _labels(resource, method, code):
    return {"resource": resource, "method": method, "code": code}


def test_api_error_codes():
    assert MetricLogger("pods", "GET").api_error_code(None) == "200"
    assert MetricLogger("pods", "POST").api_error_code(None) == "201"
    assert MetricLogger("pods", "GET").api_error_code(APIError(404)) == "404"
    assert MetricLogger("pods", "GET").api_error_code(ValueError("boom")) == "500"


def test_inc_total_responses_disabled_does_nothing():
    enable_metrics(False)
    logger = MetricLogger("disabled-res", "GET")
    logger.inc_total_responses(None)
    assert metrics.PROXY_TOTAL_RESPONSES.value(_labels("disabled-res", "GET", "200")) == 0


def test_inc_total_responses_enabled_counts_by_code():
    enable_metrics(True)
    logger = MetricLogger("enabled-res", "POST")
    logger.inc_total_responses(None)
    logger.inc_total_responses(None)
    logger.inc_total_responses(APIError(409))
    assert metrics.PROXY_TOTAL_RESPONSES.value(_labels("enabled-res", "POST", "201")) == 2
    assert metrics.PROXY_TOTAL_RESPONSES.value(_labels("enabled-res", "POST", "409")) == 1


def test_record_response_times():
    enable_metrics(True)
    logger = MetricLogger("timed-res", "GET")
    logger.record_k8s_client_response_time(None, 12.5)
    logger.record_proxy_store_response_time(RuntimeError("x"), 7.0)
    assert metrics.K8S_CLIENT_RESPONSE_TIME.observations(_labels("timed-res", "GET", "200")) == [12.5]
    assert metrics.PROXY_STORE_RESPONSE_TIME.observations(_labels("timed-res", "GET", "500")) == [7.0]


def test_counter_vec_rejects_wrong_labels():
    counter = CounterVec("sub", "count", "help", ["a", "b"])
    with pytest.raises(ValueError):
        counter.inc({"a": "1"})
    counter.inc({"a": "1", "b": "2"})
    assert counter.value({"b": "2", "a": "1"}) == 1
    assert counter.fqname == "sub_count"


def test_histogram_vec_rejects_wrong_labels():
    hist = HistogramVec("sub", "hist", "help", ["a"])
    with pytest.raises(ValueError):
        hist.observe({"b": "1"}, 1.0)
    hist.observe({"a": "1"}, 3.0)
    assert hist.observations({"a": "1"}) == [3.0]


def test_register_from_env_enables_and_registers():
    enable_metrics(False)
    assert register_from_env({"CATTLE_PROMETHEUS_METRICS": "true"}) is True
    assert metrics_enabled()
    assert metrics.PROXY_TOTAL_RESPONSES in metrics.REGISTRY
    assert metrics.K8S_CLIENT_RESPONSE_TIME in metrics.REGISTRY
    assert metrics.PROXY_STORE_RESPONSE_TIME in metrics.REGISTRY
    register_from_env({"CATTLE_PROMETHEUS_METRICS": "true"})
    assert metrics.REGISTRY.count(metrics.PROXY_TOTAL_RESPONSES) == 1


def test_register_from_env_ignores_other_values():
    enable_metrics(False)
    assert register_from_env({"CATTLE_PROMETHEUS_METRICS": "false"}) is False
    assert register_from_env({}) is False
    assert not metrics_enabled()