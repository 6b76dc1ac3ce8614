"""
HubSpoke Server - Stale Changeset Exception

Exception raised when a pending changeset no longer validates against
the current registry at commit time.
"""

from typing import Optional

from exceptions.hubspoke_error import HubSpokeError, ErrorKind


class StaleChangesetError(HubSpokeError):
    """Commit-time re-validation failed; the changeset must be re-proposed."""

    kind = ErrorKind.STALE_CHANGESET

    def __init__(self, message: str, cause: Optional[HubSpokeError] = None):
        super().__init__(message)
        self.cause = cause
