"""
Submission failure classification.

Decides whether a failed sale submission means "the backend could not be
reached, keep the sale and retry later" or "the backend refused this sale".
"""

from enum import Enum

from src.core.exceptions import (
    SaleEndpointServerError,
    SaleEndpointUnreachableError,
    SaleRejectedError,
)

# Statuses that say "try again later" even though they are not 5xx
TRANSIENT_CLIENT_STATUSES = frozenset({408, 425, 429})


class FailureKind(str, Enum):
    CONNECTIVITY = "connectivity"
    REJECTION = "rejection"


class FailureClassifier:
    """Base classifier. Subclass and override ``classify`` to change policy."""

    def classify(self, error: Exception) -> FailureKind:
        raise NotImplementedError


class DefaultFailureClassifier(FailureClassifier):
    """
    Default policy.

    - network errors and timeouts: connectivity
    - 5xx and 408/425/429: connectivity
    - any other explicit refusal: rejection
    - anything unrecognized: connectivity, so the sale is kept
    """

    def __init__(self, retry_statuses: frozenset[int] = TRANSIENT_CLIENT_STATUSES):
        self._retry_statuses = retry_statuses

    def classify(self, error: Exception) -> FailureKind:
        if isinstance(error, SaleEndpointUnreachableError):
            return FailureKind.CONNECTIVITY
        if isinstance(error, SaleEndpointServerError):
            return FailureKind.CONNECTIVITY
        if isinstance(error, SaleRejectedError):
            if error.status_code is not None and (
                error.status_code >= 500 or error.status_code in self._retry_statuses
            ):
                return FailureKind.CONNECTIVITY
            return FailureKind.REJECTION
        return FailureKind.CONNECTIVITY
