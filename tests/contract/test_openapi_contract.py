import pytest
from domain_tracker import main
from fastapi.testclient import TestClient

pytestmark = [pytest.mark.unit, pytest.mark.contract]


@pytest.fixture
def schema():
    return TestClient(main.app).get("/openapi.json").json()


def test_openapi_exposes_tracker_paths(schema):
    paths = schema["paths"]

    assert "/api/v1/tracker/google-url" in paths
    assert "/api/v1/tracker/status" in paths
    assert "/api/v1/tracker/server-check" in paths
    assert "/api/v1/tracker/network/context-ready" in paths
    assert "/api/v1/tracker/network/ip-changed" in paths
    assert "/api/v1/navigation/search-committed" in paths
    assert "/api/v1/navigation/pending" in paths
    assert "/api/v1/navigation/committed" in paths
    assert "/api/v1/navigation/closed" in paths
    assert "/api/v1/confirmation" in paths
    assert "/api/v1/confirmation/accept" in paths
    assert "/api/v1/confirmation/cancel" in paths
    assert "/health" in paths


def test_confirmation_path_supports_read_and_dismiss(schema):
    methods = set(schema["paths"]["/api/v1/confirmation"].keys())
    assert {"get", "delete"} <= methods


def test_navigation_pending_requires_url(schema):
    body = schema["paths"]["/api/v1/navigation/pending"]["post"]["requestBody"]
    assert body["required"] is True
    component = schema["components"]["schemas"]["NavigationPending"]
    assert component["required"] == ["url"]


def test_accept_response_contract(schema):
    accept = schema["paths"]["/api/v1/confirmation/accept"]["post"]
    ref = accept["responses"]["200"]["content"]["application/json"]["schema"]["$ref"]
    assert ref.endswith("/AcceptResult")
    properties = schema["components"]["schemas"]["AcceptResult"]["properties"]
    assert {"google_url", "redo_search_url"} <= set(properties)
