"""Abstract interface for the remote sale creation endpoint."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SaleAck:
    """Acknowledgement returned by the backend for an accepted sale."""

    sale_id: str
    duplicate: bool = False  # backend already held a record for this key


class ISaleEndpoint(ABC):
    """
    Interface for submitting sales to the backend.

    Implementations must send ``idempotency_key`` so that a resubmission of
    the same logical sale is a no-op on the server.

    Raises:
        SaleEndpointUnreachableError: network failure or timeout
        SaleEndpointServerError: 5xx response, or a success without a sale id
        SaleRejectedError: the backend refused the sale
    """

    @abstractmethod
    async def submit(self, payload: dict[str, Any], idempotency_key: str) -> SaleAck:
        """Submit a sale payload and return the backend acknowledgement."""
        pass
