"""
HubSpoke Server - Registry Busy Exception

Exception raised when the registry mutation lock cannot be acquired in time.
"""

from exceptions.hubspoke_error import HubSpokeError, ErrorKind


class RegistryBusyError(HubSpokeError):
    """Another changeset is being applied."""

    kind = ErrorKind.REGISTRY_BUSY
