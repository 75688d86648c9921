"""
Pytest configuration and fixtures for web backend tests.
"""

import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport

from prompt_optimizer import MockCompletionGateway, OptimizationPipeline, OptimizationSettings

# Import app components
from web_backend.main import app
from web_backend.routes.prompts import get_pipeline


@pytest.fixture
def mock_gateway() -> MockCompletionGateway:
    return MockCompletionGateway()


@pytest.fixture(scope="function")
async def client(mock_gateway: MockCompletionGateway) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client backed by the mock gateway."""
    pipeline = OptimizationPipeline(mock_gateway)

    # Override the pipeline dependency
    app.dependency_overrides[get_pipeline] = lambda: pipeline

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up
    app.dependency_overrides.clear()


@pytest.fixture
def settings_payload() -> dict:
    """Default settings in wire (camelCase) form."""
    return OptimizationSettings.defaults().model_dump(by_alias=True, mode="json")


@pytest.fixture
def midjourney_payload(settings_payload: dict) -> dict:
    settings_payload["industryGlossary"] = "art"
    settings_payload["art"]["targetGenerator"] = "midjourney"
    return settings_payload
