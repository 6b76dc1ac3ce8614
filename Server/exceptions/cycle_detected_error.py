"""
HubSpoke Server - Cycle Detected Exception

Exception raised when an association would make a site its own ancestor.
"""

from exceptions.hubspoke_error import HubSpokeError, ErrorKind


class CycleDetectedError(HubSpokeError):
    """Association would create a cycle."""

    kind = ErrorKind.CYCLE_DETECTED
