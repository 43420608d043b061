"""
Translation of prediction errors to HTTP responses.
"""
from fastapi import HTTPException, status

from flightpath.exceptions import (
    AllProvidersFailedError,
    InvalidParametersError,
    PredictionError,
    PredictionTimeoutError,
    ValidationError,
)


def to_http_exception(error: PredictionError) -> HTTPException:
    """
    Map a prediction error to an HTTPException.

    Args:
        error: Error raised by a service

    Returns:
        HTTPException with 422, 503, 504 or 500 status
    """
    if isinstance(error, (ValidationError, InvalidParametersError)):
        detail = {"message": str(error)}
        if getattr(error, "field", None):
            detail["field"] = error.field
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)

    if isinstance(error, AllProvidersFailedError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": str(error), "attempts": error.attempts}
        )

    if isinstance(error, PredictionTimeoutError):
        return HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail={"message": str(error), "timeout": error.timeout}
        )

    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": f"Prediction error: {error}"}
    )
