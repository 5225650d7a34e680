"""
Tests for ProvisioningService - exposed operations and state actions
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from tests.fakes import FakeDockerClient, FakeWSLEnvironment
from wslstack.exceptions import RuntimeUnavailableError
from wslstack.services.provisioning import NavigationEventBroadcaster, ProvisioningService
from wslstack.services.settings import SettingsStore
from wslstack.services.settings.settings_store import WSL_SETUP_DONE_KEY
from wslstack.services.wsl import ProvisioningState


class TestInstallAndRestart:
    @pytest.mark.asyncio
    async def test_install_wsl_runs_every_step(
        self, wsl_env: FakeWSLEnvironment, provisioning_service: ProvisioningService
    ) -> None:
        wsl_env.fail_on.add("dism.exe")

        results = await provisioning_service.install_wsl()

        assert [r.success for r in results] == [False, True, True]
        assert wsl_env.ran("wsl.exe --install --no-distribution")
        assert wsl_env.ran("wsl.exe --update")

    @pytest.mark.asyncio
    async def test_restart_system(
        self, wsl_env: FakeWSLEnvironment, provisioning_service: ProvisioningService
    ) -> None:
        assert await provisioning_service.restart_system() is True
        assert wsl_env.commands() == ["shutdown /r /t 0"]

    @pytest.mark.asyncio
    async def test_restart_failure(
        self, wsl_env: FakeWSLEnvironment, provisioning_service: ProvisioningService
    ) -> None:
        wsl_env.fail_on.add("shutdown")
        assert await provisioning_service.restart_system() is False


class TestCheckWslConfigDone:
    @pytest.mark.asyncio
    async def test_configures_distro(
        self, wsl_env: FakeWSLEnvironment, provisioning_service: ProvisioningService
    ) -> None:
        assert await provisioning_service.check_wsl_config_done() is True
        assert await provisioning_service.get_wsl_state() == ProvisioningState.GOOD

    @pytest.mark.asyncio
    async def test_errors_become_false(
        self, wsl_env: FakeWSLEnvironment, provisioning_service: ProvisioningService
    ) -> None:
        wsl_env.make_good()
        wsl_env.docker_running = False
        wsl_env.fail_on.update({"systemctl start", "systemctl restart"})
        wsl_env.script_effective = False

        assert await provisioning_service.check_wsl_config_done() is False
        assert provisioning_service.guard.in_progress is False

    @pytest.mark.asyncio
    async def test_concurrent_call_is_rejected(
        self, wsl_env: FakeWSLEnvironment, provisioning_service: ProvisioningService
    ) -> None:
        release = asyncio.Event()

        async def slow_configure(distro_name: str) -> bool:
            await release.wait()
            return True

        provisioning_service.configurator.check_and_configure_wsl_distro = (  # type: ignore[method-assign]
            AsyncMock(side_effect=slow_configure)
        )

        first = asyncio.create_task(provisioning_service.check_wsl_config_done())
        await asyncio.sleep(0)
        assert provisioning_service.guard.in_progress is True

        second = await provisioning_service.check_wsl_config_done()
        assert second is False
        assert wsl_env.calls == []

        release.set()
        assert await first is True
        assert provisioning_service.guard.in_progress is False
        provisioning_service.configurator.check_and_configure_wsl_distro.assert_awaited_once()


class TestFinalizingAgent:
    @pytest.mark.asyncio
    async def test_success(
        self, provisioning_service: ProvisioningService, docker_client: FakeDockerClient
    ) -> None:
        assert await provisioning_service.finalizing_agent() is True
        assert provisioning_service.last_finalize_report is not None
        assert len(provisioning_service.last_finalize_report.created) == 4

    @pytest.mark.asyncio
    async def test_unreachable_runtime_is_false(
        self, provisioning_service: ProvisioningService
    ) -> None:
        provisioning_service.orchestrator.finalize_environment = AsyncMock(  # type: ignore[method-assign]
            side_effect=RuntimeUnavailableError()
        )

        assert await provisioning_service.finalizing_agent() is False

    @pytest.mark.asyncio
    async def test_unexpected_error_is_false(
        self, provisioning_service: ProvisioningService, docker_client: FakeDockerClient
    ) -> None:
        docker_client.failing_images.add("redis:7-alpine")

        assert await provisioning_service.finalizing_agent() is False


class TestStateActions:
    @pytest.mark.asyncio
    async def test_restart_state_installs_prerequisites(
        self,
        wsl_env: FakeWSLEnvironment,
        provisioning_service: ProvisioningService,
        navigation: NavigationEventBroadcaster,
    ) -> None:
        wsl_env.needs_restart = True

        state = await provisioning_service.sync_state()

        assert state == ProvisioningState.RESTART_SYSTEM
        assert wsl_env.ran("dism.exe")
        assert navigation.last_route == "/LoginPage/RestartWidget"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "state", [ProvisioningState.INSTALL_DISTRO, ProvisioningState.CONFIGURE_DISTRO]
    )
    async def test_incomplete_states_show_config_loading(
        self,
        state: ProvisioningState,
        provisioning_service: ProvisioningService,
        navigation: NavigationEventBroadcaster,
        settings_store: SettingsStore,
    ) -> None:
        await provisioning_service.handle_wsl_state_actions(state)

        assert navigation.last_route == "/LoginPage/ConfigLoadingWidget"
        assert settings_store.has(WSL_SETUP_DONE_KEY) is False

    @pytest.mark.asyncio
    async def test_good_state_persists_flag(
        self,
        wsl_env: FakeWSLEnvironment,
        provisioning_service: ProvisioningService,
        navigation: NavigationEventBroadcaster,
        settings_store: SettingsStore,
    ) -> None:
        wsl_env.make_good()

        state = await provisioning_service.sync_state()

        assert state == ProvisioningState.GOOD
        assert settings_store.get(WSL_SETUP_DONE_KEY) is True
        assert navigation.last_route == "/MainPage"
