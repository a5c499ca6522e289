def auth_headers(key: str) -> dict:
    return {"X-API-Key": key}


def _assert_envelope(body: dict):
    assert body.get("ok") is False
    assert body.get("request_id")
    err = body.get("error") or {}
    assert err.get("code")
    assert err.get("message")


def test_envelope_401(client):
    res = client.get("/reports/anything")
    assert res.status_code == 401
    _assert_envelope(res.json())


def test_envelope_400(client):
    res = client.post("/content/submit", json={"content": ""})
    assert res.status_code == 400
    _assert_envelope(res.json())


def test_envelope_malformed_body(client):
    res = client.post("/content/submit", json={"content": "hi", "metadata": "not-an-object"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "invalid_request"
    _assert_envelope(res.json())


def test_envelope_429(client, monkeypatch):
    monkeypatch.setenv("GOVERNANCE_RATE_LIMIT", "1")
    import content_governance.config as config
    config._settings = None
    client.post("/content/submit", json={"content": "hi"}, headers=auth_headers("testkey-a"))
    res = client.post("/content/submit", json={"content": "hi again"}, headers=auth_headers("testkey-a"))
    assert res.status_code == 429
    _assert_envelope(res.json())


def test_envelope_500(client):
    from fastapi.testclient import TestClient
    from content_governance.api import app

    local_client = TestClient(app, raise_server_exceptions=False)
    res = local_client.post("/_test/boom", headers=auth_headers("testkey-a"))
    assert res.status_code == 500
    _assert_envelope(res.json())


def test_request_id_echoed(client):
    res = client.post("/content/submit", json={"content": "hi"}, headers={"X-Request-Id": "rid-123"})
    assert res.headers["X-Request-Id"] == "rid-123"
