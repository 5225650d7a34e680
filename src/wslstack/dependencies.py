"""
FastAPI dependency providers for the application.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from wslstack.protocols.command_protocols import CommandRunnerProtocol
from wslstack.services.command_execution import CommandGateway
from wslstack.services.containers import ContainerOrchestrator
from wslstack.services.provisioning import (
    NavigationEventBroadcaster,
    ProvisioningService,
)
from wslstack.services.settings import SettingsStore
from wslstack.services.wsl import (
    HostSetupService,
    RuntimeConfigurator,
    WSLStateDetector,
)
from wslstack.utils.configuration_guard import ConfigurationGuard


@lru_cache()
def get_command_gateway() -> CommandRunnerProtocol:
    """
    Provide a CommandRunnerProtocol implementation (CommandGateway).

    Returns protocol interface for loose coupling.
    """
    return CommandGateway()


@lru_cache()
def get_wsl_state_detector() -> WSLStateDetector:
    return WSLStateDetector(get_command_gateway())


@lru_cache()
def get_runtime_configurator() -> RuntimeConfigurator:
    return RuntimeConfigurator(get_command_gateway(), get_wsl_state_detector())


@lru_cache()
def get_host_setup_service() -> HostSetupService:
    return HostSetupService(get_command_gateway())


@lru_cache()
def get_container_orchestrator() -> ContainerOrchestrator:
    return ContainerOrchestrator()


@lru_cache()
def get_configuration_guard() -> ConfigurationGuard:
    """
    Provide the process-wide configuration guard.

    Must be a singleton: a second guard instance would allow overlapping runs.
    """
    return ConfigurationGuard()


@lru_cache()
def get_navigation_broadcaster() -> NavigationEventBroadcaster:
    return NavigationEventBroadcaster()


@lru_cache()
def get_settings_store() -> SettingsStore:
    return SettingsStore()


@lru_cache()
def get_provisioning_service() -> ProvisioningService:
    """Provide the ProvisioningService singleton wired with the other singletons."""
    return ProvisioningService(
        detector=get_wsl_state_detector(),
        configurator=get_runtime_configurator(),
        host_setup=get_host_setup_service(),
        orchestrator=get_container_orchestrator(),
        navigation=get_navigation_broadcaster(),
        settings=get_settings_store(),
        guard=get_configuration_guard(),
    )


ProvisioningServiceDep = Annotated[
    ProvisioningService, Depends(get_provisioning_service)
]
NavigationBroadcasterDep = Annotated[
    NavigationEventBroadcaster, Depends(get_navigation_broadcaster)
]
SettingsStoreDep = Annotated[SettingsStore, Depends(get_settings_store)]
