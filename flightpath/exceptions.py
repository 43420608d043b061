"""
Error taxonomy for the prediction pipeline
Provider-layer faults are recovered by the data services, everything else
is either surfaced to the caller or absorbed by a fallback path.
"""

from typing import Optional


class PredictionError(Exception):
    """Base class for all prediction pipeline errors"""


class ValidationError(PredictionError, ValueError):
    """Bad input. Fails fast and is never retried."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ProviderError(PredictionError):
    """
    Base class for faults raised by a provider adapter

    Attributes:
        provider: Name of the provider that failed
        retryable: Whether the same provider may be tried again
    """

    retryable = False

    def __init__(self, message: str, provider: Optional[str] = None, retryable: Optional[bool] = None):
        super().__init__(message)
        self.provider = provider
        if retryable is not None:
            self.retryable = retryable


class NetworkError(ProviderError):
    """Transport failure or unexpected HTTP status"""

    def __init__(self, message: str, provider: Optional[str] = None,
                 retryable: bool = False, status_code: Optional[int] = None):
        super().__init__(message, provider=provider, retryable=retryable)
        self.status_code = status_code


class RateLimitError(ProviderError):
    """Provider answered HTTP 429. Never retried against the same provider."""

    retryable = False


class DataUnavailableError(ProviderError):
    """Provider returned no data (sentinel value, error status or empty payload)"""

    retryable = False


class AllProvidersFailedError(PredictionError):
    """Every ranked provider exhausted its attempts"""

    def __init__(self, message: str, last_error: Optional[Exception] = None, attempts: int = 0):
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts


class InterpolationError(PredictionError):
    """Not enough samples to interpolate. Reported as a low-confidence result."""


class TerrainAnalysisError(PredictionError):
    """Terrain analysis failed"""

    def __init__(self, message: str, code: str = "ANALYSIS_FAILED"):
        super().__init__(message)
        self.code = code


class InsufficientDataError(TerrainAnalysisError):
    def __init__(self, message: str):
        super().__init__(message, code="INSUFFICIENT_DATA")


class InvalidParametersError(TerrainAnalysisError):
    def __init__(self, message: str):
        super().__init__(message, code="INVALID_PARAMETERS")


class OrchestrationError(PredictionError):
    """Unexpected failure inside terrain analysis or adjustment logic"""


class PredictionTimeoutError(PredictionError):
    """The caller-supplied timeout elapsed before the prediction finished"""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout
