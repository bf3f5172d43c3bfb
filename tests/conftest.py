"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from driveflow.api.dependencies import get_policy_evaluator
from driveflow.core.access import OwnershipContext, PolicyEvaluator
from driveflow.main import create_app


@pytest.fixture
def ownership_provider() -> AsyncMock:
    """Ownership provider returning an empty instructor context by default."""
    provider = AsyncMock()
    provider.fetch.return_value = OwnershipContext(role="instructor")
    return provider


@pytest.fixture
def audit_sink() -> MagicMock:
    """Audit sink recording calls."""
    return MagicMock()


@pytest.fixture
def evaluator(ownership_provider: AsyncMock, audit_sink: MagicMock) -> PolicyEvaluator:
    """Policy evaluator wired to mock collaborators."""
    return PolicyEvaluator(ownership_provider=ownership_provider, audit_sink=audit_sink)


@pytest.fixture
def app(evaluator: PolicyEvaluator, audit_sink: MagicMock):
    """Create test application with the evaluator dependency overridden."""
    application = create_app(audit_sink=audit_sink)
    application.dependency_overrides[get_policy_evaluator] = lambda: evaluator

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
