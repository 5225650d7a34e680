"""
Tests for the provisioning HTTP API
"""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from tests.fakes import FakeDockerClient, FakeWSLEnvironment
from wslstack.api.provisioning import router
from wslstack.services.provisioning import ProvisioningService
from wslstack.services.settings import SettingsStore


class TestProvisioningAPI:
    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_install_wsl_reports_steps(
        self, async_client: AsyncClient, wsl_env: FakeWSLEnvironment
    ) -> None:
        wsl_env.fail_on.add("--update")

        response = await async_client.post("/api/provisioning/install-wsl")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert [step["success"] for step in data["steps"]] == [True, True, False]
        assert data["steps"][0]["command"][0] == "dism.exe"

    @pytest.mark.asyncio
    async def test_check_wsl(
        self, async_client: AsyncClient, wsl_env: FakeWSLEnvironment
    ) -> None:
        response = await async_client.get("/api/provisioning/check-wsl")
        assert response.json() == {"success": True}

        wsl_env.needs_restart = True
        response = await async_client.get("/api/provisioning/check-wsl")
        assert response.json() == {"success": False}

    @pytest.mark.asyncio
    async def test_check_config_done(
        self, async_client: AsyncClient, wsl_env: FakeWSLEnvironment
    ) -> None:
        response = await async_client.post("/api/provisioning/check-config-done")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert wsl_env.tcp_listening is True

    @pytest.mark.asyncio
    async def test_restart_system(
        self, async_client: AsyncClient, wsl_env: FakeWSLEnvironment
    ) -> None:
        response = await async_client.post("/api/provisioning/restart-system")

        assert response.json() == {"success": True}
        assert wsl_env.ran("shutdown /r /t 0")

    @pytest.mark.asyncio
    async def test_finalize(
        self, async_client: AsyncClient, docker_client: FakeDockerClient
    ) -> None:
        response = await async_client.post("/api/provisioning/finalize")

        assert response.json() == {"success": True}
        assert len(docker_client.containers.store) == 4

    @pytest.mark.asyncio
    async def test_finalize_unreachable(
        self, async_client: AsyncClient, docker_client: FakeDockerClient
    ) -> None:
        docker_client.reachable = False

        response = await async_client.post("/api/provisioning/finalize")

        assert response.status_code == 200
        assert response.json() == {"success": False}
        assert docker_client.pulls == []

    @pytest.mark.asyncio
    async def test_state(
        self, async_client: AsyncClient, wsl_env: FakeWSLEnvironment
    ) -> None:
        response = await async_client.get("/api/provisioning/state")
        assert response.json() == {"state": "InstallDistro", "rank": 1}

        wsl_env.make_good()
        response = await async_client.get("/api/provisioning/state")
        assert response.json() == {"state": "Good", "rank": 3}

    @pytest.mark.asyncio
    async def test_sync_state_stores_setup_flag(
        self, async_client: AsyncClient, wsl_env: FakeWSLEnvironment
    ) -> None:
        wsl_env.make_good()

        response = await async_client.post("/api/provisioning/state/sync")
        assert response.json() == {"state": "Good", "rank": 3}

        response = await async_client.get("/api/provisioning/settings/isWslSetupDone")
        assert response.status_code == 200
        assert response.json() == {"key": "isWslSetupDone", "value": True}

    @pytest.mark.asyncio
    async def test_sync_state_error_is_500(
        self, async_client: AsyncClient, provisioning_service: ProvisioningService
    ) -> None:
        provisioning_service.detector.get_wsl_state = AsyncMock(  # type: ignore[method-assign]
            side_effect=RuntimeError("probe crashed")
        )

        response = await async_client.post("/api/provisioning/state/sync")

        assert response.status_code == 500
        assert response.json()["detail"] == "probe crashed"

    @pytest.mark.asyncio
    async def test_missing_setting_is_404(
        self, async_client: AsyncClient, settings_store: SettingsStore
    ) -> None:
        response = await async_client.get("/api/provisioning/settings/unknown")

        assert response.status_code == 404

    def test_events_route_is_registered(self) -> None:
        routes = [route.path for route in router.routes]
        assert "/events" in routes
