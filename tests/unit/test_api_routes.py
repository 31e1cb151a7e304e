from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import admin_router, get_service, router
from llm_gateway import LlmGatewayError

OWNER = {"X-Owner-Id": "owner-1"}


@pytest.fixture
def client(service):
    app = FastAPI()
    app.include_router(router)
    app.include_router(admin_router)
    app.dependency_overrides[get_service] = lambda: service
    return TestClient(app)


def _create(client, **body):
    payload = {"prompt": "Learn about vacation preferences", "question_limit": 2}
    payload.update(body)
    resp = client.post("/api/admin/templates", json=payload, headers=OWNER)
    assert resp.status_code == 201
    return resp.json()


def test_create_template_validation_maps_to_400(client):
    resp = client.post("/api/admin/templates", json={"prompt": "x", "question_limit": 0}, headers=OWNER)
    assert resp.status_code == 400

    resp = client.post("/api/admin/templates", json={"prompt": "   "}, headers=OWNER)
    assert resp.status_code == 400


def test_admin_routes_require_owner_header(client):
    assert client.get("/api/admin/templates").status_code == 401
    assert client.get("/api/admin/templates", headers={"X-Owner-Id": " "}).status_code == 401


def test_foreign_owner_is_forbidden(client):
    created = _create(client)
    template_id = created["template"]["template_id"]

    resp = client.get(f"/api/admin/templates/{template_id}", headers={"X-Owner-Id": "owner-2"})

    assert resp.status_code == 403


def test_unknown_resources_are_404(client):
    assert client.get("/api/interviews/by-token/interview-unknown").status_code == 404
    assert client.post("/api/interviews/missing/sessions", json={}).status_code == 404
    assert client.get("/api/interviews/sessions/missing/summary").status_code == 404


def test_start_failure_maps_to_502(client, questions):
    created = _create(client)
    questions.replies = [LlmGatewayError("down")]

    resp = client.post(f"/api/interviews/{created['template']['template_id']}/sessions", json={})

    assert resp.status_code == 502


def test_answer_to_finished_session_is_400(client):
    created = _create(client, question_limit=1)
    start = client.post(f"/api/interviews/{created['template']['template_id']}/sessions", json={}).json()
    session_id = start["session_id"]

    assert client.post(f"/api/interviews/sessions/{session_id}/answer", json={"answer": "Yes"}).json()["completed"]
    resp = client.post(f"/api/interviews/sessions/{session_id}/answer", json={"answer": "Again"})

    assert resp.status_code == 400


def test_owner_config_endpoints(client):
    assert client.get("/api/admin/config", headers=OWNER).json() == {"has_api_key": False, "model": None}

    resp = client.post("/api/admin/config", json={"api_key": "sk-1", "model": "gpt-4o"}, headers=OWNER)

    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert client.get("/api/admin/config", headers=OWNER).json() == {"has_api_key": True, "model": "gpt-4o"}


def test_archive_hides_share_link(client):
    created = _create(client)
    template = created["template"]

    resp = client.post(f"/api/admin/templates/{template['template_id']}/archive", headers=OWNER)

    assert resp.json()["status"] == "archived"
    assert client.get(f"/api/interviews/by-token/{template['share_token']}").status_code == 404
