import os
import uuid

import pytest
import requests


def _base() -> str:
    return os.environ.get("CAREER_LADDER_BASE_URL", "http://127.0.0.1:8000").rstrip("/")


def _json(session: requests.Session, method: str, path: str, body: dict | None = None) -> requests.Response:
    url = f"{_base()}{path}"
    headers = {"Content-Type": "application/json"}
    return session.request(method=method, url=url, json=body, headers=headers, timeout=20)


@pytest.fixture(scope="module")
def session() -> requests.Session:
    sess = requests.Session()
    try:
        sess.get(f"{_base()}/", timeout=3)
    except requests.RequestException as e:
        pytest.skip(f"Backend not reachable at {_base()}: {e}")
    return sess


@pytest.mark.smoke
def test_openapi_route_present_and_json(session):
    r = _json(session, "GET", "/openapi.json")
    assert r.status_code == 200, f"OpenAPI route missing: {r.status_code} {r.text[:200]}"
    assert r.headers.get("content-type", "").startswith("application/json"), "OpenAPI should be JSON"
    data = r.json()
    assert "openapi" in data and "paths" in data, "Invalid OpenAPI payload"
    assert "/matrix/compare" in data["paths"]


@pytest.mark.smoke
def test_level_lifecycle_and_compare_flow(session):
    level_id = f"SMOKE_{uuid.uuid4().hex[:8]}"
    other_id = f"{level_id}_B"
    for lid in (level_id, other_id):
        payload = {
            "id": lid,
            "name": f"Smoke Level {lid}",
            "track": "IC",
            "summary_description": "Created by smoke test",
            "trajectory_info": None,
        }
        r = _json(session, "POST", "/levels/", body=payload)
        assert r.status_code == 201, f"Create failed: {r.status_code} {r.text}"

    try:
        # Search finds the new level by name
        r = _json(session, "POST", "/matrix/search", body={"query": level_id})
        assert r.status_code == 200, f"Search failed: {r.status_code} {r.text}"
        assert level_id in [lvl["id"] for lvl in r.json()["job_levels"]]

        # Compare both levels
        r = _json(session, "POST", "/matrix/compare", body={"level_ids": [level_id, other_id]})
        assert r.status_code == 200, f"Compare failed: {r.status_code} {r.text}"
        assert {lvl["id"] for lvl in r.json()["job_levels"]} == {level_id, other_id}

        # Unknown ids are reported together
        r = _json(session, "POST", "/matrix/compare", body={"level_ids": [level_id, "NOPE_1", "NOPE_2"]})
        assert r.status_code == 404
        assert r.json().get("missing_ids") == ["NOPE_1", "NOPE_2"]
    finally:
        for lid in (level_id, other_id):
            _json(session, "DELETE", f"/levels/{lid}")
