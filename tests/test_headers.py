from app.api import routes as api_routes


def assert_default_headers(resp):
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["Referrer-Policy"] == "no-referrer"
    assert "POST" in resp.headers["Access-Control-Allow-Methods"]
    assert "Content-Type" in resp.headers["Access-Control-Allow-Headers"]


def test_preflight_answers_204(client):
    resp = client.options(
        "/api/chat",
        headers={"Origin": "https://ui.example", "Access-Control-Request-Method": "POST"},
    )
    assert resp.status_code == 204
    assert resp.content == b""
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert_default_headers(resp)


def test_preflight_skips_rate_limit_and_routing(make_client):
    client = make_client(RATE_LIMIT_MAX_REQUESTS=1)
    for path in ["/api/chat", "/api/chat", "/api/chat", "/anything/else"]:
        assert client.options(path).status_code == 204


def test_headers_on_success_and_error(client):
    assert_default_headers(client.get("/api/status"))
    assert_default_headers(client.get("/app.js"))
    resp = client.post("/api/chat", content=b"{broken")
    assert resp.status_code == 400
    assert_default_headers(resp)


def test_cors_origin_list_echoes_known_origin(make_client):
    client = make_client(CORS_ORIGIN="https://a.example, https://b.example")
    resp = client.get("/api/status", headers={"Origin": "https://b.example"})
    assert resp.headers["Access-Control-Allow-Origin"] == "https://b.example"
    assert resp.headers["Vary"] == "Origin"

    resp = client.get("/api/status", headers={"Origin": "https://evil.example"})
    assert resp.headers["Access-Control-Allow-Origin"] == "https://a.example"


def test_unexpected_error_becomes_server_error(client, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(api_routes, "generate_reply", boom)
    resp = client.post("/api/chat", json={"message": "hello"})
    assert resp.status_code == 500
    data = resp.json()
    assert data["ok"] is False
    assert data["error"] == "server_error"
    assert_default_headers(resp)
