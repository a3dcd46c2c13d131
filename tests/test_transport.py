"""Tests for reporting clients."""

import itertools
import json
import threading
from datetime import datetime, timezone

import pytest

from chorus.config import LaunchConfig, ReporterConfig
from chorus.transport import (
    Attachment,
    FinishRequest,
    HTTPReportingClient,
    ItemAttribute,
    ItemHandle,
    LogRequest,
    Parameter,
    RecordingClient,
    ReportingError,
    StartItemRequest,
    StartLaunchRequest,
    create_client,
    to_epoch_millis,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def item(name: str, item_type: str = "STEP") -> StartItemRequest:
    return StartItemRequest(name=name, type=item_type, start_time=NOW)


class FakeService:
    """Stands in for HTTPReportingClient._request."""

    def __init__(self, fail_on: str | None = None):
        self.requests = []
        self.fail_on = fail_on
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    async def __call__(self, method, url, **kwargs):
        with self._lock:
            self.requests.append((method, url, kwargs))
        if self.fail_on and self.fail_on in url:
            raise ReportingError("HTTP 500: Internal Server Error", status=500)
        if method == "POST" and not url.endswith("/log"):
            return {"id": f"id-{next(self._ids)}"}
        return {}


@pytest.fixture
def service():
    return FakeService()


@pytest.fixture
def http_client(service, monkeypatch):
    client = HTTPReportingClient("https://reports.example.com/", "web", api_key="secret")
    monkeypatch.setattr(client, "_request", service)
    yield client
    client.close()


class TestRequestModels:
    """Tests for request serialization."""

    def test_start_item_omits_empty_fields(self):
        assert item("x").to_dict() == {
            "name": "x",
            "type": "STEP",
            "startTime": to_epoch_millis(NOW),
        }

    def test_start_item_full(self):
        rq = StartItemRequest(
            name="x",
            type="STEP",
            start_time=NOW,
            description="d",
            attributes=[ItemAttribute("v", "k")],
            code_ref="a.feature:1",
            parameters=[Parameter("arg0", "1")],
            test_case_id="tc",
            has_stats=False,
        )
        data = rq.to_dict()
        assert data["attributes"] == [{"value": "v", "key": "k"}]
        assert data["codeRef"] == "a.feature:1"
        assert data["parameters"] == [{"key": "arg0", "value": "1"}]
        assert data["testCaseId"] == "tc"
        assert data["hasStats"] is False

    def test_finish_without_status(self):
        assert FinishRequest(NOW).to_dict() == {"endTime": to_epoch_millis(NOW)}

    def test_system_attribute(self):
        assert ItemAttribute("1.0", "agent", system=True).to_dict() == {
            "value": "1.0", "key": "agent", "system": True,
        }


class TestItemHandle:
    """Tests for ItemHandle."""

    def test_resolved(self):
        parent = ItemHandle.resolved("p")
        handle = ItemHandle.resolved("c", parent=parent)
        assert handle.done()
        assert handle.result() == "c"
        assert handle.parent is parent
        assert repr(handle) == "ItemHandle('c')"


class TestRecordingClient:
    """Tests for RecordingClient."""

    def test_builds_tree(self):
        client = RecordingClient()
        launch = client.start_launch(StartLaunchRequest(name="n", start_time=NOW))
        feature = client.start_item(None, item("Feature: A", "STORY"))
        step = client.start_item(feature, item("Given x"))
        client.emit_log(LogRequest("boom", "ERROR", NOW, item=step))
        client.finish_item(step, FinishRequest(NOW, "FAILED"))
        client.finish_item(feature, FinishRequest(NOW))
        client.finish_launch(launch, FinishRequest(NOW))

        assert launch.result() == "launch-1"
        [root] = client.tree()
        assert root["name"] == "Feature: A"
        [child] = root["children"]
        assert child["status"] == "FAILED"
        assert child["logs"] == [{"level": "ERROR", "message": "boom"}]

    def test_to_json(self):
        client = RecordingClient()
        client.start_launch(StartLaunchRequest(name="n", start_time=NOW))
        client.emit_attachment(
            LogRequest("image", "UNKNOWN", NOW, attachment=Attachment("a.png", "image/png", b"123"))
        )
        data = json.loads(client.to_json())
        assert data["calls"][1]["attachment"] == {"name": "a.png", "content_type": "image/png", "size": 3}

    def test_attachment_required(self):
        with pytest.raises(ValueError, match="requires an attachment"):
            RecordingClient().emit_attachment(LogRequest("x", "INFO", NOW))


class TestHTTPReportingClient:
    """Tests for HTTPReportingClient with the network replaced."""

    def test_builds_tree_in_order(self, http_client, service):
        launch = http_client.start_launch(StartLaunchRequest(name="n", start_time=NOW))
        feature = http_client.start_item(None, item("Feature: A", "STORY"))
        step = http_client.start_item(feature, item("Given x"))
        http_client.emit_log(LogRequest("boom", "ERROR", NOW, item=step))
        http_client.finish_item(step, FinishRequest(NOW, "FAILED"))
        http_client.finish_item(feature, FinishRequest(NOW))
        http_client.finish_launch(launch, FinishRequest(NOW))

        calls = [(m, url.replace("https://reports.example.com", "")) for m, url, _ in service.requests]
        assert calls[0] == ("POST", "/api/v1/web/launch")
        assert ("POST", "/api/v1/web/item") in calls
        feature_id = feature.result()
        step_id = step.result()
        assert ("POST", f"/api/v1/web/item/{feature_id}") in calls
        assert calls.index(("PUT", f"/api/v1/web/item/{step_id}")) < calls.index(
            ("PUT", f"/api/v1/web/item/{feature_id}")
        )
        assert calls[-1] == ("PUT", f"/api/v1/web/launch/{launch.result()}/finish")

    def test_payloads_carry_launch_and_item(self, http_client, service):
        launch = http_client.start_launch(StartLaunchRequest(name="n", start_time=NOW))
        step = http_client.start_item(None, item("Given x"))
        http_client.emit_log(LogRequest("hello", "INFO", NOW, item=step))
        http_client.finish_launch(launch, FinishRequest(NOW))

        [log] = [kw["json"] for _, url, kw in service.requests if url.endswith("/api/v2/web/log")]
        assert log["launchUuid"] == launch.result()
        assert log["itemUuid"] == step.result()
        assert log["message"] == "hello"

    def test_attachment_is_multipart(self, http_client, service):
        launch = http_client.start_launch(StartLaunchRequest(name="n", start_time=NOW))
        http_client.emit_attachment(
            LogRequest("image", "UNKNOWN", NOW, attachment=Attachment("a.png", "image/png", b"123"))
        )
        http_client.finish_launch(launch, FinishRequest(NOW))
        [(_, _, kwargs)] = [r for r in service.requests if r[1].endswith("/log")]
        assert "data" in kwargs
        assert "json" not in kwargs

    def test_failed_item_fails_handle_not_caller(self, monkeypatch):
        service = FakeService(fail_on="/item")
        client = HTTPReportingClient("https://reports.example.com", "web")
        monkeypatch.setattr(client, "_request", service)
        try:
            launch = client.start_launch(StartLaunchRequest(name="n", start_time=NOW))
            feature = client.start_item(None, item("Feature: A", "STORY"))
            step = client.start_item(feature, item("Given x"))
            client.finish_item(step, FinishRequest(NOW))
            client.finish_launch(launch, FinishRequest(NOW))
            with pytest.raises(ReportingError):
                feature.result(timeout=5)
            with pytest.raises(ReportingError):
                step.result(timeout=5)
        finally:
            client.close()

    def test_item_before_launch(self):
        client = HTTPReportingClient("https://reports.example.com", "web")
        with pytest.raises(ReportingError, match="Launch not started"):
            client.start_item(None, item("x"))

    def test_bearer_header(self):
        client = HTTPReportingClient("https://reports.example.com", "web", api_key="secret")
        assert client._build_headers()["Authorization"] == "Bearer secret"
        assert "Authorization" not in HTTPReportingClient("https://x", "web")._build_headers()


class TestCreateClient:
    """Tests for the client factory."""

    def config(self, **kwargs) -> ReporterConfig:
        return ReporterConfig(version=1, launch=LaunchConfig(name="n"), **kwargs)

    def test_dry_run(self):
        assert isinstance(create_client(self.config(), dry_run=True), RecordingClient)

    def test_http(self):
        client = create_client(self.config(endpoint="https://x", project="web", timeout_ms=1000))
        assert isinstance(client, HTTPReportingClient)
        assert client.project == "web"

    @pytest.mark.parametrize("kwargs, message", [
        ({"project": "web"}, "endpoint"),
        ({"endpoint": "https://x"}, "project"),
    ])
    def test_missing_settings(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            create_client(self.config(**kwargs))
