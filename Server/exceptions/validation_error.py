"""
HubSpoke Server - Validation Error Exception

Exception raised for malformed actions and invalid CSV rows.
CSV problems are collected per row and reported together.
"""

from typing import List, Optional

from exceptions.hubspoke_error import HubSpokeError, ErrorKind


class HubSpokeValidationError(HubSpokeError):
    """Input failed validation; errors holds one message per problem."""

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]
