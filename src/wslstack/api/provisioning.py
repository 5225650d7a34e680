import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from wslstack.dependencies import (
    NavigationBroadcasterDep,
    ProvisioningServiceDep,
    SettingsStoreDep,
)
from wslstack.models.schemas import (
    CommandStepResponse,
    InstallWSLResponse,
    SettingResponse,
    StateResponse,
    SuccessResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/install-wsl", response_model=InstallWSLResponse)
async def install_wsl(service: ProvisioningServiceDep) -> InstallWSLResponse:
    """Enable the WSL prerequisites on the host; failed steps are reported, not raised"""
    try:
        results = await service.install_wsl()
    except Exception as e:
        logger.error(f"Error installing WSL: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return InstallWSLResponse(
        success=True,
        steps=[
            CommandStepResponse(
                command=r.command,
                return_code=r.return_code,
                success=r.success,
                stdout=r.stdout,
                stderr=r.stderr,
                duration=r.duration,
                error=r.error,
            )
            for r in results
        ],
    )


@router.get("/check-wsl", response_model=SuccessResponse)
async def check_wsl(service: ProvisioningServiceDep) -> SuccessResponse:
    return SuccessResponse(success=await service.check_wsl())


@router.post("/check-config-done", response_model=SuccessResponse)
async def check_wsl_config_done(service: ProvisioningServiceDep) -> SuccessResponse:
    """Configure the distro if needed; False when another run is in progress"""
    return SuccessResponse(success=await service.check_wsl_config_done())


@router.post("/restart-system", response_model=SuccessResponse)
async def restart_system(service: ProvisioningServiceDep) -> SuccessResponse:
    return SuccessResponse(success=await service.restart_system())


@router.post("/finalize", response_model=SuccessResponse)
async def finalizing_agent(service: ProvisioningServiceDep) -> SuccessResponse:
    return SuccessResponse(success=await service.finalizing_agent())


@router.get("/state", response_model=StateResponse)
async def get_wsl_state(service: ProvisioningServiceDep) -> StateResponse:
    state = await service.get_wsl_state()
    return StateResponse(state=state.value, rank=state.rank)


@router.post("/state/sync", response_model=StateResponse)
async def sync_state(service: ProvisioningServiceDep) -> StateResponse:
    """Detect the current state and navigate the UI accordingly"""
    try:
        state = await service.sync_state()
    except Exception as e:
        logger.error(f"Error syncing WSL state: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return StateResponse(state=state.value, rank=state.rank)


@router.get("/events")
async def stream_navigation_events(
    broadcaster: NavigationBroadcasterDep,
) -> StreamingResponse:
    """Stream navigation requests via Server-Sent Events"""
    return StreamingResponse(
        broadcaster.stream_events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@router.get("/settings/{key}", response_model=SettingResponse)
async def get_setting(key: str, settings: SettingsStoreDep) -> SettingResponse:
    if not settings.has(key):
        raise HTTPException(status_code=404, detail=f"Setting {key} not found")
    return SettingResponse(key=key, value=settings.get(key))
