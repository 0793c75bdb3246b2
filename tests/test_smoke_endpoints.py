import os
import typing as t

import pytest
import requests


def _get_base_url() -> str:
    """
    Determine base URL for smoke tests:
    - CAREER_LADDER_BASE_URL env var if provided (e.g., https://host:port)
    - else default to http://127.0.0.1:8000 for local uvicorn
    """
    return os.environ.get("CAREER_LADDER_BASE_URL", "http://127.0.0.1:8000").rstrip("/")


@pytest.fixture(scope="module")
def session() -> requests.Session:
    sess = requests.Session()
    try:
        sess.get(f"{_get_base_url()}/", timeout=3)
    except requests.RequestException as e:
        pytest.skip(f"Backend not reachable at {_get_base_url()}: {e}")
    return sess


def _check_get(session: requests.Session, path: str, expect_nonempty: bool = False) -> t.Tuple[int, t.Any]:
    """
    GET an endpoint and minimally validate:
    - not a 5xx
    - JSON parseable
    - non-empty when requested
    Returns: (status_code, parsed_json)
    """
    url = f"{_get_base_url()}{path}"
    r = session.get(url, timeout=15)
    assert r.status_code < 500, f"500+ on {path}: {r.status_code} body={r.text[:500]}"
    try:
        data = r.json()
    except ValueError as exc:
        pytest.fail(f"Non-JSON response for {path}: {exc}\nBody: {r.text[:500]}")
    if expect_nonempty:
        assert data and (not isinstance(data, dict) or len(data) > 0), f"Empty payload for {path}"
    return r.status_code, data


@pytest.mark.smoke
def test_browse_endpoints_smoke(session):
    """
    Basic smoke across read endpoints:
    1) GET / health
    2) levels, competencies, matrix and metadata routers respond 2xx with JSON
    3) No 5xx responses
    """
    code, data = _check_get(session, "/", expect_nonempty=True)
    assert code == 200, f"Unexpected / status {code}"

    endpoints = [
        "/levels/",
        "/competencies/",
        "/matrix/",
        "/matrix/search?query=engineer",
        "/metadata/",
        "/metadata/edit-history",
    ]
    for ep in endpoints:
        c, d = _check_get(session, ep, expect_nonempty=False)
        assert c == 200, f"{ep} failed with {c}"
        assert d is not None, f"{ep} returned null"

    c, d = _check_get(session, "/matrix/", expect_nonempty=True)
    assert set(d) >= {"job_levels", "competency_categories", "metadata"}
