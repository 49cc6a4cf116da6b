# ABOUTME: Pytest fixtures and configuration for ConfigHub CLI tests
# ABOUTME: Provides shared settings, sample API payloads, and mock clients

import os
from typing import Any, AsyncIterator
from unittest.mock import AsyncMock

import pytest
import structlog
from pydantic import SecretStr

from confighub_cli.config import HubSettings, WaitSettings
from confighub_cli.utils.client import HubClient, Unit

SPACE_ID = "11111111-1111-1111-1111-111111111111"
UNIT_ID = "22222222-2222-2222-2222-222222222222"
OPERATION_ID = "33333333-3333-3333-3333-333333333333"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer CONFIGHUB_/CUB_ variables out of tests."""
    for name in list(os.environ):
        if name.startswith("CONFIGHUB_TEST_"):
            continue
        if name.startswith(("CONFIGHUB_", "CUB_")):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo configure_logging so later tests never write to a closed stream."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def hub_settings() -> HubSettings:
    """Create settings pointing at a fake ConfigHub server."""
    return HubSettings(
        url="https://hub.example.com/api",
        token=SecretStr("test-token"),
        space="my-space",
        wait=WaitSettings(wait=True, timeout="2m"),
    )


@pytest.fixture
def unit_payload() -> dict[str, Any]:
    """Unit JSON as the API returns it, with no pending triggers."""
    return {
        "UnitID": UNIT_ID,
        "SpaceID": SPACE_ID,
        "OrganizationID": "44444444-4444-4444-4444-444444444444",
        "Slug": "my-unit",
        "DisplayName": "my-unit",
        "ToolchainType": "Kubernetes/YAML",
        "ApplyGates": None,
        "Labels": {"tier": "backend"},
        "HeadRevisionNum": 3,
        "LiveRevisionNum": 2,
        "LastChangeDescription": "bump replicas",
        "Data": "a2luZDogRGVwbG95bWVudAo=",
    }


@pytest.fixture
def gated_payload(unit_payload: dict[str, Any]) -> dict[str, Any]:
    """Unit JSON whose triggers are still running."""
    return {**unit_payload, "ApplyGates": {"awaiting/triggers": True}}


@pytest.fixture
def settled_unit(unit_payload: dict[str, Any]) -> Unit:
    """Unit with no apply gates."""
    return Unit.from_api_response(unit_payload)


@pytest.fixture
def gated_unit(gated_payload: dict[str, Any]) -> Unit:
    """Unit with the awaiting/triggers gate set."""
    return Unit.from_api_response(gated_payload)


@pytest.fixture
def recorded_sleeps() -> list[float]:
    """Delays passed to the injected sleep."""
    return []


@pytest.fixture
def fake_sleep(recorded_sleeps: list[float]):
    """Async sleep that records its argument instead of sleeping."""

    async def sleep(delay: float) -> None:
        recorded_sleeps.append(delay)

    return sleep


@pytest.fixture
def mock_hub_client(settled_unit: Unit) -> AsyncMock:
    """Create a mock ConfigHub client usable as an async context manager."""
    client = AsyncMock(spec=HubClient)
    client.__aenter__.return_value = client
    client.__aexit__.return_value = None
    client.get_unit.return_value = settled_unit
    client.resolve_unit.return_value = settled_unit
    return client


# Integration test fixtures


@pytest.fixture
def confighub_url() -> str | None:
    """Get ConfigHub URL from environment."""
    return os.environ.get("CONFIGHUB_TEST_URL")


@pytest.fixture
def confighub_token() -> str | None:
    """Get ConfigHub token from environment."""
    return os.environ.get("CONFIGHUB_TEST_TOKEN")


@pytest.fixture
async def live_hub_client(
    confighub_url: str | None,
    confighub_token: str | None,
) -> AsyncIterator[HubClient | None]:
    """Create a live ConfigHub client for integration tests."""
    if not confighub_url or not confighub_token:
        yield None
        return

    settings = HubSettings(url=confighub_url, token=SecretStr(confighub_token))
    async with HubClient(settings) as client:
        yield client
