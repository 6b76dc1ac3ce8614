"""
HubSpoke Server - Invalid State Exception

Exception raised when a changeset is not in the state an operation requires.
"""

from exceptions.hubspoke_error import HubSpokeError, ErrorKind


class InvalidStateError(HubSpokeError):
    """Changeset is not in the required state."""

    kind = ErrorKind.INVALID_STATE
