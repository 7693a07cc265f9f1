"""애플리케이션 진입점 최소 동작 테스트."""

from __future__ import annotations

import asyncio
import importlib

from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.schemas.extract import ExtractResponse
from app.schemas.trip import DailyPlan, PlannedSite, TripPlan, TripSummary

SECRET_HEADERS = {"x-service-secret": "test-service-secret"}


def _set_required_env(monkeypatch, **overrides: str) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("SERVICE_SECRET", "test-service-secret")
    monkeypatch.setenv("DOCS_MODE", "disabled")
    for key, value in overrides.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()


def _load_main_module():
    import app.main as main_module

    return importlib.reload(main_module)


def _sample_plan() -> TripPlan:
    return TripPlan(
        days=[
            DailyPlan(
                day=1,
                city="Giza",
                sites=[PlannedSite(name="Pyramids of Giza", city="Giza", description="Ancient wonder", cost_egp=800)],
                daily_cost_egp=800,
            )
        ],
        trip_summary=TripSummary(total_trip_cost_egp=800, remaining_budget_egp=4200),
    )


def test_health_check_endpoint(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()

    client = TestClient(main_module.app)
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "Egypt Trip Planner is running"}


def test_generate_openapi_ack_example(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()

    schema = main_module.app.openapi()
    examples = schema["paths"]["/api/v1/generate"]["post"]["responses"]["202"]["content"]["application/json"][
        "examples"
    ]

    assert examples["accepted"]["value"] == {"status": "ACCEPTED", "job_id": "trip-job-12345"}


def test_docs_disabled_by_default(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()

    client = TestClient(main_module.app)

    assert client.get("/docs").status_code == 404
    assert client.get("/redoc").status_code == 404
    assert client.get("/openapi.json").status_code == 404


def test_docs_secret_mode_requires_service_secret(monkeypatch) -> None:
    _set_required_env(monkeypatch, DOCS_MODE="secret")
    main_module = _load_main_module()

    client = TestClient(main_module.app)

    unauthorized = client.get("/docs")
    assert unauthorized.status_code == 401

    authorized = client.get("/docs", headers=SECRET_HEADERS)
    assert authorized.status_code == 200


def test_security_headers_are_attached(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()

    client = TestClient(main_module.app)
    response = client.get("/")

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert response.headers["referrer-policy"] == "no-referrer"
    assert response.headers["permissions-policy"] == "geolocation=(), microphone=(), camera=()"


def test_cors_allowlist_from_env(monkeypatch) -> None:
    _set_required_env(
        monkeypatch,
        CORS_ALLOW_ORIGINS="https://example.com",
        CORS_ALLOW_METHODS="GET,POST,OPTIONS",
        CORS_ALLOW_HEADERS="Content-Type,x-service-secret",
    )
    main_module = _load_main_module()

    client = TestClient(main_module.app)
    response = client.get("/", headers={"Origin": "https://example.com"})

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "https://example.com"


def test_trips_endpoint_requires_service_secret(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()

    client = TestClient(main_module.app)
    missing = client.post("/api/v1/trips", json={"days": 1})
    invalid = client.post("/api/v1/trips", json={"days": 1}, headers={"x-service-secret": "wrong"})

    assert missing.status_code == 401
    assert missing.json() == {"detail": "서비스 시크릿 헤더가 누락되었습니다."}
    assert invalid.status_code == 401
    assert invalid.json() == {"detail": "유효하지 않은 서비스 시크릿입니다."}


def test_trips_endpoint_returns_trip_plan(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()
    received: list[dict] = []

    async def _fake_build(payload):
        received.append(payload)
        return _sample_plan()

    monkeypatch.setattr("app.api.trips.build_trip_plan", _fake_build)

    client = TestClient(main_module.app)
    response = client.post("/api/v1/trips", json={"days": 1, "cities": ["Cairo"]}, headers=SECRET_HEADERS)

    assert response.status_code == 200
    assert received == [{"days": 1, "cities": ["Cairo"]}]
    body = response.json()
    assert body["success"] is True
    assert body["days"][0]["sites"][0]["name"] == "Pyramids of Giza"
    assert body["trip_summary"]["remaining_budget_egp"] == 4200


def test_trip_destinations_endpoint_uses_camel_case(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()

    async def _fake_build(payload):
        return _sample_plan()

    monkeypatch.setattr("app.api.trips.build_trip_plan", _fake_build)

    client = TestClient(main_module.app)
    response = client.post("/api/v1/trips/destinations", json={"days": 1}, headers=SECRET_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["totalEstimatedCost"] == 800
    assert body["destinations"][0]["coverImage"] == "/assets/destinations/pyramids-of-giza.svg"


def test_trips_endpoint_timeout_returns_504(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()

    async def _fake_build(payload):
        raise asyncio.TimeoutError

    monkeypatch.setattr("app.api.trips.build_trip_plan", _fake_build)

    client = TestClient(main_module.app)
    response = client.post("/api/v1/trips", json={}, headers=SECRET_HEADERS)

    assert response.status_code == 504
    assert response.json() == {"detail": "여행 일정 생성 시간이 초과되었습니다."}


def test_generate_endpoint_accepts_job(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()
    jobs: list[tuple[str, str, dict]] = []

    async def _fake_process(job_id: str, callback_url: str, payload: dict) -> None:
        jobs.append((job_id, callback_url, payload))

    monkeypatch.setattr("app.api.generate.process_generate_request", _fake_process)

    with TestClient(main_module.app) as client:
        response = client.post(
            "/api/v1/generate",
            json={"job_id": "job-1", "callback_url": "https://example.com/internal", "payload": {"days": 2}},
            headers=SECRET_HEADERS,
        )

    assert response.status_code == 202
    assert response.json() == {"status": "ACCEPTED", "job_id": "job-1"}


def test_generate_endpoint_rejects_blank_job_id(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()

    client = TestClient(main_module.app)
    response = client.post(
        "/api/v1/generate",
        json={"job_id": "", "callback_url": "https://example.com/internal", "payload": {}},
        headers=SECRET_HEADERS,
    )

    assert response.status_code == 422


def test_extract_endpoint_delegates_to_service(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    main_module = _load_main_module()

    async def _fake_extract(message, conversation_history):
        return ExtractResponse(success=True, data={"complete": False}, response=f"echo: {message}")

    monkeypatch.setattr("app.api.extract.extract_trip_data", _fake_extract)

    client = TestClient(main_module.app)
    response = client.post("/api/v1/extract", json={"message": "I'm 25"}, headers=SECRET_HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {"complete": False},
        "response": "echo: I'm 25",
        "error": None,
    }


def test_extract_endpoint_returns_504_on_timeout(monkeypatch) -> None:
    _set_required_env(monkeypatch, REQUEST_TIMEOUT_SECONDS="5")
    main_module = _load_main_module()

    async def _slow_extract(message, conversation_history):
        raise asyncio.TimeoutError

    monkeypatch.setattr("app.api.extract.extract_trip_data", _slow_extract)

    client = TestClient(main_module.app)
    response = client.post("/api/v1/extract", json={"message": "I'm 25"}, headers=SECRET_HEADERS)

    assert response.status_code == 504
    assert response.json() == {"detail": "여행 정보 추출 시간이 초과되었습니다."}
