"""
Tests for the health server routes.
"""

from types import SimpleNamespace

from fastapi import FastAPI
from fastapi.testclient import TestClient

from volumebot.api.routes import router
from volumebot.core.session_store import SessionStore


def make_client(store=None, bot=None) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.state.store = store
    app.state.bot = bot
    return TestClient(app)


def test_root_reports_running():
    response = make_client().get("/")
    assert response.status_code == 200
    assert response.text == "VolumeBot is running!"


def test_health_counts_sessions():
    store = SessionStore()
    store.get_or_create(1)
    store.get_or_create(2)

    response = make_client(store, SimpleNamespace(is_running=True)).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "sessions": 2, "busy_sessions": 0, "bot_running": True}


async def test_health_counts_sessions_in_use():
    store = SessionStore()
    store.get_or_create(1)
    client = make_client(store)

    async with store.session(2):
        response = client.get("/health")

    assert response.json()["sessions"] == 2
    assert response.json()["busy_sessions"] == 1


def test_health_without_bot():
    response = make_client().get("/health")
    assert response.json()["bot_running"] is False
    assert response.json()["sessions"] == 0
    assert response.json()["busy_sessions"] == 0
