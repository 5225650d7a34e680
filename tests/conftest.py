"""
Test configuration and fixtures
"""

import os
import tempfile
from contextlib import contextmanager
from typing import AsyncGenerator, Iterator

# Keep the app away from the real data directory
os.environ.setdefault("WSLSTACK_DATA_DIR", tempfile.mkdtemp(prefix="wslstack-test-"))
os.environ.setdefault("WSLSTACK_DATABASE_URL", "sqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tests.fakes import FakeDockerClient, FakeWSLEnvironment
from wslstack.dependencies import (
    get_navigation_broadcaster,
    get_provisioning_service,
    get_settings_store,
)
from wslstack.main import app
from wslstack.models.database import Base
from wslstack.services.containers.container_orchestrator import ContainerOrchestrator
from wslstack.services.provisioning import NavigationEventBroadcaster, ProvisioningService
from wslstack.services.settings import SettingsStore
from wslstack.services.wsl import (
    DistroInstaller,
    DistroUserService,
    HostSetupService,
    RuntimeConfigurator,
    SetupScriptRemediation,
    TargetedRemediation,
    WSLStateDetector,
)
from wslstack.utils.configuration_guard import ConfigurationGuard

DISTRO = "Ubuntu-22.04"


@pytest.fixture
def test_db() -> Iterator[sessionmaker]:
    """Create an isolated in-memory database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        engine.dispose()


@pytest.fixture
def settings_store(test_db: sessionmaker) -> SettingsStore:
    @contextmanager
    def session_factory() -> Iterator[Session]:
        db = test_db()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    return SettingsStore(session_factory)


@pytest.fixture
def wsl_env() -> FakeWSLEnvironment:
    return FakeWSLEnvironment()


@pytest.fixture
def detector(wsl_env: FakeWSLEnvironment) -> WSLStateDetector:
    return WSLStateDetector(wsl_env, distro_name=DISTRO)


@pytest.fixture
def configurator(
    wsl_env: FakeWSLEnvironment, detector: WSLStateDetector
) -> RuntimeConfigurator:
    """Configurator with the real strategy chain and an instant installer."""
    user_service = DistroUserService(wsl_env)
    configurator = RuntimeConfigurator(
        wsl_env,
        detector,
        user_service=user_service,
        strategies=[
            TargetedRemediation(wsl_env, detector),
            SetupScriptRemediation(wsl_env, detector, script="#!/bin/bash\nexit 0\n"),
        ],
    )
    configurator.installer = DistroInstaller(
        wsl_env,
        detector,
        user_service,
        configure_runtime=configurator.configure_runtime,
        poll_interval=0,
        settle_grace=0,
        max_wait=5,
    )
    return configurator


@pytest.fixture
def docker_client() -> FakeDockerClient:
    return FakeDockerClient()


@pytest.fixture
def orchestrator(docker_client: FakeDockerClient) -> ContainerOrchestrator:
    return ContainerOrchestrator(
        socket_connector=lambda: docker_client,
        tcp_connector=lambda: docker_client,
    )


@pytest.fixture
def navigation() -> NavigationEventBroadcaster:
    return NavigationEventBroadcaster()


@pytest.fixture
def provisioning_service(
    wsl_env: FakeWSLEnvironment,
    detector: WSLStateDetector,
    configurator: RuntimeConfigurator,
    orchestrator: ContainerOrchestrator,
    navigation: NavigationEventBroadcaster,
    settings_store: SettingsStore,
) -> ProvisioningService:
    return ProvisioningService(
        detector=detector,
        configurator=configurator,
        host_setup=HostSetupService(wsl_env),
        orchestrator=orchestrator,
        navigation=navigation,
        settings=settings_store,
        guard=ConfigurationGuard(),
    )


@pytest_asyncio.fixture
async def async_client(
    provisioning_service: ProvisioningService,
    navigation: NavigationEventBroadcaster,
    settings_store: SettingsStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client wired to the fake environment."""
    app.dependency_overrides[get_provisioning_service] = lambda: provisioning_service
    app.dependency_overrides[get_navigation_broadcaster] = lambda: navigation
    app.dependency_overrides[get_settings_store] = lambda: settings_store
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://testserver"
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
