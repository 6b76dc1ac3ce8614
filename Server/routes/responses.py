"""
HubSpoke Server - Route Helpers

Translation of changeset engine results into HTTP responses.
"""

from fastapi import HTTPException, status

from exceptions import ErrorKind
from models.infrastructure import OperationResult


# HTTP status code for each error kind
ERROR_STATUS_CODES = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DUPLICATE_URL: status.HTTP_409_CONFLICT,
    ErrorKind.CYCLE_DETECTED: status.HTTP_409_CONFLICT,
    ErrorKind.STALE_CHANGESET: status.HTTP_409_CONFLICT,
    ErrorKind.REGISTRY_BUSY: status.HTTP_409_CONFLICT,
    ErrorKind.SELF_ASSOCIATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.STORAGE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def ValueOrRaise(result: OperationResult):
    """
    Return the value of a successful result

    Raises:
        HTTPException: with the status code for the result's error kind and a
                       detail dict carrying kind, message, action index and errors
    """
    if result.success:
        return result.value

    raise HTTPException(
        status_code=ERROR_STATUS_CODES.get(result.error_kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={
            "error": result.error_kind.value if result.error_kind else None,
            "message": result.message,
            "action_index": result.action_index,
            "errors": result.errors,
        }
    )
