from wslstack.services.provisioning.navigation import (
    NavigationChannelProtocol,
    NavigationEventBroadcaster,
)
from wslstack.services.provisioning.provisioning_service import ProvisioningService

__all__ = [
    "NavigationChannelProtocol",
    "NavigationEventBroadcaster",
    "ProvisioningService",
]
