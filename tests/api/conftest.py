from __future__ import annotations

import httpx
import pytest

from hawker.main import create_app


@pytest.fixture
async def client(settings, session_factory) -> httpx.AsyncClient:
    app = create_app(settings=settings, session_factory=session_factory)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
