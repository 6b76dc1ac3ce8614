"""
HubSpoke Server - Not Found Exception

Exception raised when a site, parent or changeset does not exist.
"""

from exceptions.hubspoke_error import HubSpokeError, ErrorKind


class NotFoundError(HubSpokeError):
    """A referenced site or changeset does not exist."""

    kind = ErrorKind.NOT_FOUND
