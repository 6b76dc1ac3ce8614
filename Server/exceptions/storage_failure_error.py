"""
HubSpoke Server - Storage Failure Exception

Exception raised when the database transaction fails.
"""

from exceptions.hubspoke_error import HubSpokeError, ErrorKind


class StorageFailureError(HubSpokeError):
    """Persistence layer failed; nothing was written."""

    kind = ErrorKind.STORAGE_FAILURE
