# ruff: noqa

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from taskboard.api.deps import get_task_service
from taskboard.api.tasks import router as tasks_router
from taskboard.core import error_handling
from taskboard.core.error_handling import (
    REQUEST_ID_HEADER,
    _error_payload,
    _task_domain_exception_handler,
    _task_not_found_exception_handler,
    _task_validation_exception_handler,
    install_error_handling,
)
from taskboard.main import create_app
from taskboard.services.task_filters import TaskFilters
from taskboard.services.task_store import InMemoryTaskStore
from taskboard.services.tasks import TaskService

TASKS_PATH = "/api/v1/tasks"


class _OfflineStore(InMemoryTaskStore):
    async def list(self, filters: TaskFilters) -> list:
        raise RuntimeError("store offline")


def _client(store: InMemoryTaskStore | None = None) -> TestClient:
    service = TaskService(store or InMemoryTaskStore())
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(tasks_router)
    app.include_router(api_v1)
    app.dependency_overrides[get_task_service] = lambda: service
    return TestClient(app, raise_server_exceptions=False)


def test_invalid_filter_returns_400_with_details_and_request_id():
    resp = _client().get(TASKS_PATH, params={"status": "finished"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation error"
    assert [issue["path"] for issue in body["details"]] == ["status"]
    assert body["details"][0]["code"] == "enum"
    assert isinstance(body.get("request_id"), str) and body["request_id"]
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_malformed_json_is_reported_against_the_body():
    resp = _client().post(
        TASKS_PATH,
        content=b'{"title": "T", ',
        headers={"content-type": "application/json"},
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation error"
    assert [(issue["path"], issue["code"]) for issue in body["details"]] == [
        ("body", "json_invalid"),
    ]


def test_missing_body_is_reported_against_the_body():
    resp = _client().post(TASKS_PATH)

    assert resp.status_code == 400
    assert [(issue["path"], issue["code"]) for issue in resp.json()["details"]] == [
        ("body", "missing"),
    ]


def test_unknown_route_reports_route_not_found():
    resp = _client().get("/api/v1/projects")

    assert resp.status_code == 404
    body = resp.json()
    assert body["error"] == "Route not found"
    assert body["path"] == "/api/v1/projects"
    assert body["method"] == "GET"


def test_task_errors_map_to_client_errors():
    client = _client()

    missing = client.get(f"{TASKS_PATH}/{uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Task not found"
    assert "details" not in missing.json()

    invalid = client.post(TASKS_PATH, json={"title": "x" * 101, "description": "D"})
    assert invalid.status_code == 400
    assert invalid.json()["details"][0]["path"] == "title"

    orphan = client.post(
        TASKS_PATH,
        json={
            "title": "T",
            "description": "D",
            "kind": "subtask",
            "details": {"parentTaskId": str(uuid4())},
        },
    )
    assert orphan.status_code == 400
    assert orphan.json()["error"] == "Parent task not found"
    assert "details" not in orphan.json()


def test_unhandled_store_failure_returns_500_with_request_id():
    resp = _client(_OfflineStore()).get(TASKS_PATH)

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal Server Error"
    assert "store offline" not in resp.text
    assert isinstance(body.get("request_id"), str) and body["request_id"]
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_client_provided_request_id_is_trimmed_and_echoed():
    resp = _client().get(f"{TASKS_PATH}/not-a-uuid", headers={REQUEST_ID_HEADER: "  req-123  "})

    assert resp.status_code == 404
    assert resp.json()["request_id"] == "req-123"
    assert resp.headers.get(REQUEST_ID_HEADER) == "req-123"


def test_slow_request_emits_slow_log(monkeypatch: pytest.MonkeyPatch) -> None:
    warnings: list[tuple[str, dict[str, object]]] = []

    def _fake_warning(message: str, *args: object, **kwargs: object) -> None:
        _ = args
        extra = kwargs.get("extra")
        warnings.append((message, extra if isinstance(extra, dict) else {}))

    perf_ticks = iter((100.0, 100.2))

    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 1)
    monkeypatch.setattr(error_handling, "perf_counter", lambda: next(perf_ticks))
    monkeypatch.setattr(error_handling.logger, "warning", _fake_warning)

    resp = _client().get(TASKS_PATH)

    assert resp.status_code == 200
    assert any(
        message == "http.request.slow"
        and extra.get("slow_threshold_ms") == 1
        and extra.get("path") == TASKS_PATH
        for message, extra in warnings
    )


def test_health_probes_skip_request_logs_unless_enabled(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    logged_paths: list[object] = []

    def _fake_info(message: str, *args: object, **kwargs: object) -> None:
        _ = args
        extra = kwargs.get("extra")
        if message == "http.request" and isinstance(extra, dict):
            logged_paths.append(extra.get("path"))

    monkeypatch.setattr(error_handling.logger, "info", _fake_info)

    with TestClient(create_app(store_factory=InMemoryTaskStore)) as client:
        monkeypatch.setattr(error_handling.settings, "request_log_include_health", False)
        client.get("/healthz")
        client.get(TASKS_PATH)
        monkeypatch.setattr(error_handling.settings, "request_log_include_health", True)
        client.get("/readyz")

    assert logged_paths == [TASKS_PATH, "/readyz"]


def test_error_payload_omits_request_id_when_none() -> None:
    assert _error_payload(error="x", request_id=None) == {"error": "x"}


def test_error_payload_orders_details_before_request_id() -> None:
    payload = _error_payload(
        error="Validation error",
        request_id="req-1",
        details=[{"path": "title", "message": "m", "code": "c"}],
    )
    assert list(payload) == ["error", "details", "request_id"]


@pytest.mark.asyncio
async def test_task_exception_handlers_reject_wrong_exception() -> None:
    req = Request({"type": "http", "headers": [], "state": {}})
    with pytest.raises(TypeError, match="Expected TaskValidationError"):
        await _task_validation_exception_handler(req, Exception("x"))
    with pytest.raises(TypeError, match="Expected TaskNotFoundError"):
        await _task_not_found_exception_handler(req, Exception("x"))
    with pytest.raises(TypeError, match="Expected TaskDomainError"):
        await _task_domain_exception_handler(req, Exception("x"))
