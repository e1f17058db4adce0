import requests

from lawhelp.services.metrics import METRIC_HELP, MetricsCollector
from lawhelp.storage import MemoryStorage
from scripts import health_check


def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "healthy"
    assert data["storage"] == "memory"
    assert data["environment"] == "test"
    assert data["uptime"] >= 0


def test_metrics_endpoint_reports_counts(client, make_user):
    make_user()

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "# TYPE lawhelp_total_users gauge" in response.text
    assert "\nlawhelp_total_users 1\n" in response.text
    for name, _, _ in METRIC_HELP:
        assert f"# HELP {name} " in response.text


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] == 0
    assert body["metadata"]["statusCode"] == 404


def test_collector_averages_and_error_rate():
    collector = MetricsCollector()
    collector.record_request(10.0, 200)
    collector.record_request(30.0, 200)
    collector.record_request(20.0, 502)
    collector.record_request(40.0, 404)

    values = collector.collect(MemoryStorage())

    assert values["lawhelp_requests_total"] == 4
    assert values["lawhelp_response_time_ms"] == 25.0
    assert values["lawhelp_error_rate_percent"] == 50.0
    assert values["lawhelp_total_users"] == 0
    assert values["lawhelp_memory_usage_mb"] > 0


def test_collector_without_requests():
    values = MetricsCollector().collect()

    assert values["lawhelp_error_rate_percent"] == 0.0
    assert values["lawhelp_response_time_ms"] == 0.0


class FakeResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


def test_health_check_retries_until_healthy(monkeypatch):
    responses = [requests.ConnectionError("refused"), FakeResponse(503), FakeResponse(200, text="ok")]
    delays = []

    def fake_get(url, timeout):
        outcome = responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(health_check.requests, "get", fake_get)

    assert health_check.check_health("http://api/health", max_retries=3, retry_delay=2, sleep=delays.append)
    assert delays == [2, 2]


def test_health_check_gives_up(monkeypatch):
    delays = []
    monkeypatch.setattr(health_check.requests, "get", lambda url, timeout: FakeResponse(500))

    assert not health_check.check_health("http://api/health", max_retries=3, retry_delay=1, sleep=delays.append)
    assert delays == [1, 1]
