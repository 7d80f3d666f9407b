import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app

INDEX_HTML = "<!doctype html><html><body>spa index</body></html>"


@pytest.fixture
def public_dir(tmp_path):
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text(INDEX_HTML)
    (root / "app.js").write_text("console.log('bridge');")
    (root / "style.css").write_text("body { margin: 0; }")
    (root / "data.bin").write_bytes(b"\x00\x01\x02")
    assets = root / "assets"
    assets.mkdir()
    (assets / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    return root


@pytest.fixture
def make_settings(public_dir):
    def _make(**overrides) -> Settings:
        values = {
            "PUBLIC_DIR": str(public_dir),
            "OPENAI_API_KEY": "",
            "OPENAI_MODEL": "test-model",
            "OPENAI_BASE_URL": "https://llm.test/v1",
            "OPENAI_TIMEOUT_SECONDS": 5,
            "DEFAULT_SYSTEM_PROMPT": "default prompt",
            "CHAT_TOKEN": None,
            "CORS_ORIGIN": "*",
            "RATE_LIMIT_MAX_REQUESTS": 30,
            "RATE_LIMIT_WINDOW_SECONDS": 60,
            "MAX_BODY_BYTES": 1024,
            "UPSTREAM_DETAIL_MAX_CHARS": 500,
        }
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture
def make_client(make_settings):
    """
    Build a TestClient around a fresh app. Pass `transport` to route relay
    calls to an httpx.MockTransport instead of the network.
    """
    clients = []

    def _make(transport=None, **overrides) -> TestClient:
        app = create_app(make_settings(**overrides), relay_transport=transport)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
