"""
HubSpoke Server - Exceptions Package

Contains all exception classes raised inside the hierarchy core.
"""

from exceptions.hubspoke_error import HubSpokeError, ErrorKind
from exceptions.not_found_error import NotFoundError
from exceptions.duplicate_url_error import DuplicateUrlError
from exceptions.self_association_error import SelfAssociationError
from exceptions.cycle_detected_error import CycleDetectedError
from exceptions.stale_changeset_error import StaleChangesetError
from exceptions.validation_error import HubSpokeValidationError
from exceptions.invalid_state_error import InvalidStateError
from exceptions.registry_busy_error import RegistryBusyError
from exceptions.storage_failure_error import StorageFailureError

__all__ = [
    'HubSpokeError',
    'ErrorKind',
    'NotFoundError',
    'DuplicateUrlError',
    'SelfAssociationError',
    'CycleDetectedError',
    'StaleChangesetError',
    'HubSpokeValidationError',
    'InvalidStateError',
    'RegistryBusyError',
    'StorageFailureError',
]
