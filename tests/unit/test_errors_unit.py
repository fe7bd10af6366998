import pytest
from domain_tracker import errors
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from starlette.requests import Request

pytestmark = pytest.mark.unit


def _request(path: str = "/problem") -> Request:
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": "GET",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": b"",
        "headers": [],
        "client": ("127.0.0.1", 12345),
        "server": ("testserver", 80),
        "scheme": "http",
        "root_path": "",
    }
    return Request(scope)


def test_status_helpers_and_split_detail():
    assert errors._title(404) == "Not Found"
    assert errors._title(999) == "Error"
    assert errors._generic_code(503) == "http_503"
    assert errors._split_detail({"detail": "x", "error_code": "custom"}, 400) == (
        "x",
        "custom",
    )
    assert errors._split_detail({"detail": "x"}, 409) == ("x", "http_409")
    assert errors._split_detail(None, 500) == ("Internal Server Error", "http_500")
    assert errors._split_detail("plain", 404) == ("plain", "http_404")


def test_tracker_problems_carry_codes_and_extra_fields():
    missing = errors.ConfirmationNotPending(current_domain="http://www.google.fr/")
    assert missing.status_code == 404
    assert missing.error_code == "confirmation_not_pending"
    assert missing.detail == "No domain confirmation is pending"
    assert missing.extra == {"current_domain": "http://www.google.fr/"}

    not_ready = errors.ServiceNotReady("Redis unreachable")
    assert not_ready.status_code == 503
    assert not_ready.detail == "Redis unreachable"
    assert str(not_ready) == "Redis unreachable"


def test_problem_response_includes_expected_fields():
    response = errors.problem_response(
        request=_request("/api/v1/confirmation"),
        status_code=404,
        detail="No domain confirmation is pending",
        error_code="confirmation_not_pending",
        extra={"candidate": None},
    )
    assert response.status_code == 404
    assert response.media_type == errors.PROBLEM_MEDIA_TYPE
    assert b'"instance":"/api/v1/confirmation"' in response.body


def test_registered_handlers_render_problem_documents():
    app = FastAPI()
    errors.register_exception_handlers(app)

    @app.get("/http-error")
    def _http_error():
        raise HTTPException(
            status_code=409,
            detail={"detail": "busy", "error_code": "probe_busy"},
            headers={"Retry-After": "5"},
        )

    @app.get("/no-confirmation")
    def _no_confirmation():
        raise errors.ConfirmationNotPending(current_domain="http://www.google.fr/")

    @app.get("/crash")
    def _crash():
        raise RuntimeError("boom")

    @app.get("/typed/{value}")
    def _typed(value: int):
        return {"value": value}

    client = TestClient(app, raise_server_exceptions=False)

    http_error = client.get("/http-error")
    assert http_error.status_code == 409
    assert http_error.headers["Retry-After"] == "5"
    assert http_error.json()["error_code"] == "probe_busy"
    assert http_error.json()["title"] == "Conflict"

    missing = client.get("/nope")
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "http_404"

    invalid = client.get("/typed/abc")
    assert invalid.status_code == 422
    assert invalid.json()["error_code"] == "validation_error"
    assert invalid.json()["errors"]

    problem = client.get("/no-confirmation")
    assert problem.status_code == 404
    assert problem.headers["content-type"].startswith(errors.PROBLEM_MEDIA_TYPE)
    assert problem.json()["type"] == "urn:domain-tracker:problem:confirmation_not_pending"
    assert problem.json()["current_domain"] == "http://www.google.fr/"

    crash = client.get("/crash")
    assert crash.status_code == 500
    assert crash.json()["detail"] == "Internal Server Error"
