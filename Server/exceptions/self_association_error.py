"""
HubSpoke Server - Self Association Exception

Exception raised when a site is associated with itself.
"""

from exceptions.hubspoke_error import HubSpokeError, ErrorKind


class SelfAssociationError(HubSpokeError):
    """Site cannot be its own parent."""

    kind = ErrorKind.SELF_ASSOCIATION
