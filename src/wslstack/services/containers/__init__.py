"""
Container services for the backing-service topology.
"""

from .container_orchestrator import ContainerOrchestrator, FinalizeReport
from .container_specs import CONTAINER_SPECS, ContainerSpec

__all__ = [
    "CONTAINER_SPECS",
    "ContainerOrchestrator",
    "ContainerSpec",
    "FinalizeReport",
]
