"""Tests for the application entry point."""
import uvicorn

from emoc import main
from emoc.core.config import settings


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "eMoC Workflow Service API"}


def test_run_serves_app_with_configured_bind_address(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main.run()

    assert calls == [(
        "emoc.main:app",
        {"host": settings.HOST, "port": settings.PORT, "log_level": settings.LOG_LEVEL.lower()},
    )]
