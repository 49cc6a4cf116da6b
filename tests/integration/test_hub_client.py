# ABOUTME: Integration tests for the ConfigHub client and waiting engine against a live server
# ABOUTME: Requires CONFIGHUB_TEST_URL, CONFIGHUB_TEST_TOKEN and CONFIGHUB_TEST_SPACE

"""Integration tests for HubClient against a live ConfigHub server.

These tests require:
- CONFIGHUB_TEST_URL pointing at the API base URL
- CONFIGHUB_TEST_TOKEN with write access to the test space
- CONFIGHUB_TEST_SPACE naming a space the tests may create units in

Each test that creates a unit deletes it again.
"""

from __future__ import annotations

import base64
import os
import uuid
from typing import AsyncIterator

import pytest

from confighub_cli.utils.client import HubClient, HubError, Unit
from confighub_cli.utils.waiting import await_triggers_removal, triggers_settled

TEST_CONFIG = b"""apiVersion: v1
kind: ConfigMap
metadata:
  name: cub-integration
data:
  key: value
"""

requires_confighub = pytest.mark.skipif(
    not (
        os.environ.get("CONFIGHUB_TEST_URL")
        and os.environ.get("CONFIGHUB_TEST_TOKEN")
        and os.environ.get("CONFIGHUB_TEST_SPACE")
    ),
    reason="ConfigHub test server not configured",
)


@pytest.fixture
def space_slug() -> str:
    return os.environ.get("CONFIGHUB_TEST_SPACE", "")


@pytest.fixture
async def scratch_unit(
    live_hub_client: HubClient | None,
    space_slug: str,
) -> AsyncIterator[Unit | None]:
    """Create a throwaway unit and delete it afterwards."""
    if live_hub_client is None:
        yield None
        return

    space = await live_hub_client.resolve_space(space_slug)
    unit = await live_hub_client.create_unit(
        space.space_id,
        {
            "SpaceID": space.space_id,
            "Slug": f"cub-it-{uuid.uuid4().hex[:8]}",
            "ToolchainType": "Kubernetes/YAML",
            "Data": base64.b64encode(TEST_CONFIG).decode("ascii"),
        },
    )
    try:
        yield unit
    finally:
        await live_hub_client.delete_unit(space.space_id, unit.unit_id)


@pytest.mark.integration
class TestHubClientIntegration:
    """Integration tests for HubClient against live ConfigHub."""

    @requires_confighub
    async def test_resolve_space(self, live_hub_client: HubClient | None, space_slug: str):
        """Test the configured space can be found by slug."""
        if live_hub_client is None:
            pytest.skip("ConfigHub connection not available")

        space = await live_hub_client.resolve_space(space_slug)

        assert space.slug == space_slug
        assert uuid.UUID(space.space_id)

    @requires_confighub
    async def test_created_unit_settles(
        self,
        live_hub_client: HubClient | None,
        scratch_unit: Unit | None,
    ):
        """Test triggers on a new unit finish within the poll budget."""
        if live_hub_client is None or scratch_unit is None:
            pytest.skip("ConfigHub connection not available")

        settled = await await_triggers_removal(live_hub_client, scratch_unit)

        assert triggers_settled(settled)
        assert settled.unit_id == scratch_unit.unit_id

    @requires_confighub
    async def test_patch_then_settle(
        self,
        live_hub_client: HubClient | None,
        scratch_unit: Unit | None,
    ):
        """Test a merge-patched label is visible once triggers settle."""
        if live_hub_client is None or scratch_unit is None:
            pytest.skip("ConfigHub connection not available")

        patched = await live_hub_client.patch_unit(
            scratch_unit.space_id, scratch_unit.unit_id, {"Labels": {"cub-it": "yes"}}
        )
        settled = await await_triggers_removal(live_hub_client, patched)

        assert settled.labels.get("cub-it") == "yes"

    @requires_confighub
    async def test_unit_not_found(self, live_hub_client: HubClient | None, space_slug: str):
        """Test an unknown unit slug raises a 404 HubError."""
        if live_hub_client is None:
            pytest.skip("ConfigHub connection not available")

        space = await live_hub_client.resolve_space(space_slug)
        with pytest.raises(HubError) as exc_info:
            await live_hub_client.resolve_unit(space.space_id, "cub-it-does-not-exist")

        assert exc_info.value.code == 404
