from typing import Any, List, Optional

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    success: bool


class CommandStepResponse(BaseModel):
    command: List[str]
    return_code: int
    success: bool
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    error: Optional[str] = None


class InstallWSLResponse(BaseModel):
    success: bool
    steps: List[CommandStepResponse] = []


class StateResponse(BaseModel):
    state: str
    rank: int


class SettingResponse(BaseModel):
    key: str
    value: Any = None


class HealthResponse(BaseModel):
    status: str
