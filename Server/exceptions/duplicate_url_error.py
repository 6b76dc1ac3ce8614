"""
HubSpoke Server - Duplicate URL Exception

Exception raised when a site URL is already used by another site.
"""

from exceptions.hubspoke_error import HubSpokeError, ErrorKind


class DuplicateUrlError(HubSpokeError):
    """Site URL already registered."""

    kind = ErrorKind.DUPLICATE_URL
