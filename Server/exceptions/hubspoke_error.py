"""
HubSpoke Server - Base Error

Base exception class and error kinds shared by the site registry,
hierarchy validator and changeset engine.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Error taxonomy surfaced to callers of the changeset engine"""
    NOT_FOUND = "NotFound"
    DUPLICATE_URL = "DuplicateUrl"
    SELF_ASSOCIATION = "SelfAssociation"
    CYCLE_DETECTED = "CycleDetected"
    STALE_CHANGESET = "StaleChangeset"
    VALIDATION_ERROR = "ValidationError"
    INVALID_STATE = "InvalidState"
    REGISTRY_BUSY = "RegistryBusy"
    STORAGE_FAILURE = "StorageFailure"


class HubSpokeError(Exception):
    """Base exception for hierarchy and changeset errors."""

    kind: ErrorKind = ErrorKind.VALIDATION_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.action_index = None  # Set by the changeset engine for action failures
