"""
Load lookup provider interface.

A provider resolves a load reference to a LoadRecord. Providers report
ordinary failures through the returned LookupOutcome instead of raising,
and own their own timeout and retry behaviour.
"""
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from ..models import LookupOutcome

# Shape of the lookup callable accepted by the processor
LookupFn = Callable[[str, int], Awaitable[LookupOutcome]]


class LoadLookupError(Exception):
    """Base exception for failures while looking up a load."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LoadLookupProvider(ABC):
    """Resolves load references against an external system."""

    @abstractmethod
    async def lookup(self, reference: str, timeout_ms: int) -> LookupOutcome:
        """Look up a load by reference.

        Args:
            reference: Normalized load reference
            timeout_ms: Time budget for the whole lookup

        Returns:
            SUCCESS with the record, NOT_FOUND when the provider has no
            matching load, ERROR for transport/auth/timeout failures
        """

    async def aclose(self) -> None:
        """Release any network resources held by the provider."""
        return None
