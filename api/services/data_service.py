"""
Resilient access to ranked data providers.
Retries transient faults on one provider, then fails over to the next.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from flightpath.data_collection.api_client import ProviderClient
from flightpath.data_collection.cache import TTLCache
from flightpath.exceptions import AllProvidersFailedError, ProviderError, RateLimitError
from flightpath.utils.logger import get_logger


T = TypeVar("T")


@dataclass
class ProviderResult(Generic[T]):
    """Outcome of one provider after all of its attempts."""

    provider: str
    value: Optional[T] = None
    error: Optional[Exception] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CallReport:
    """Per-call trace of which providers were tried and how often."""

    results: List[ProviderResult] = field(default_factory=list)

    @property
    def total_attempts(self) -> int:
        return sum(result.attempts for result in self.results)


class ResilientDataService:
    """
    Base class for services that hide several providers behind one call.

    Subclasses rank providers for a request and call `_run_ranked`, which
    walks the ranking and returns the first success or raises
    AllProvidersFailedError.
    """

    def __init__(
        self,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 0.5,
        cache: Optional[TTLCache] = None,
        logger=None
    ):
        """
        Initialize service.

        Args:
            retry_attempts: Attempts per provider for retryable faults
            retry_backoff_seconds: Linear backoff unit between attempts
            cache: Result cache (None disables caching)
            logger: Logger instance
        """
        self.retry_attempts = max(1, retry_attempts)
        self.retry_backoff_seconds = retry_backoff_seconds
        self.cache = cache
        self.logger = logger or get_logger()

    async def _attempt(
        self,
        provider: ProviderClient,
        operation: Callable[[ProviderClient], Awaitable[T]]
    ) -> ProviderResult:
        """Run one provider until it succeeds, fails permanently or runs out of attempts."""
        result = ProviderResult(provider=provider.name)

        while result.attempts < self.retry_attempts:
            result.attempts += 1
            try:
                result.value = await operation(provider)
                result.error = None
                return result

            except RateLimitError as e:
                self.logger.warning(f"Rate limit exceeded for {provider.name}, trying next provider")
                result.error = e
                return result

            except ProviderError as e:
                result.error = e
                if not e.retryable:
                    self.logger.warning(f"{provider.name} failed: {e}")
                    return result

                if result.attempts < self.retry_attempts:
                    delay = self.retry_backoff_seconds * result.attempts
                    self.logger.warning(f"{provider.name} error: {e}, retrying in {delay:.1f}s...")
                    await asyncio.sleep(delay)

            except Exception as e:
                self.logger.error(f"{provider.name} raised an unexpected error: {e!r}")
                result.error = e
                return result

        self.logger.warning(f"{provider.name} failed after {result.attempts} attempts")
        return result

    async def _run_ranked(
        self,
        providers: Sequence[ProviderClient],
        operation: Callable[[ProviderClient], Awaitable[T]],
        description: str,
        report: Optional[CallReport] = None
    ) -> Any:
        """
        Try providers in order.

        Args:
            providers: Ranked providers
            operation: Coroutine factory taking a provider
            description: Human-readable request description for errors
            report: Trace filled with one ProviderResult per provider tried

        Returns:
            First successful value

        Raises:
            AllProvidersFailedError: Every provider failed
        """
        if report is None:
            report = CallReport()

        for provider in providers:
            result = await self._attempt(provider, operation)
            report.results.append(result)
            if result.ok:
                if len(report.results) > 1:
                    self.logger.info(f"Failed over to {provider.name} for {description}")
                return result.value

        last_error = report.results[-1].error if report.results else None
        self.logger.error(f"All providers failed for {description}")
        raise AllProvidersFailedError(
            f"All providers failed for {description}",
            last_error=last_error,
            attempts=report.total_attempts
        )

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    def get_cache_stats(self) -> dict:
        if self.cache is None:
            return {"enabled": False}
        return {"enabled": True, **self.cache.get_stats()}
