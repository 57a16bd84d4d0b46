import pytest
from fastapi.testclient import TestClient

from passcode_service.main import create_app
from passcode_service.presentation.dependencies import (
    get_keyword_table,
    get_kv_store,
)
from passcode_service.infrastructure.wechat.signature import compute_signature
from tests.fakes import FakeKeyValueStore, StaticKeywordTable

WECHAT_TOKEN = "changeme"


@pytest.fixture()
def app_and_deps():
    app = create_app()
    store = FakeKeyValueStore()
    keywords = StaticKeywordTable({"layout plugin": "Plugin: https://example.com"})

    def _get_store():
        return store

    def _get_keywords():
        return keywords

    app.dependency_overrides[get_kv_store] = _get_store
    app.dependency_overrides[get_keyword_table] = _get_keywords

    try:
        yield app, store
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False)


def signed_params(timestamp: str = "1700000000", nonce: str = "n0nce") -> dict[str, str]:
    return {
        "signature": compute_signature(WECHAT_TOKEN, timestamp, nonce),
        "timestamp": timestamp,
        "nonce": nonce,
    }
