"""HTTP client for the backend's create-sale endpoint."""

from typing import Any

import httpx

from src.config import get_logger, get_settings
from src.core.exceptions import (
    SaleEndpointServerError,
    SaleEndpointUnreachableError,
    SaleRejectedError,
)
from src.core.interfaces.sale_endpoint import ISaleEndpoint, SaleAck
from src.infrastructure.remote.base import BaseRemoteClient, error_message

logger = get_logger(__name__)

IDEMPOTENCY_HEADER = "Idempotency-Key"


def _extract_sale_id(body: Any) -> str | None:
    """Find the server's sale id in the shapes the backend returns."""
    if not isinstance(body, dict):
        return None
    for container in (body, body.get("data"), body.get("sale"), body.get("transaction")):
        if isinstance(container, dict):
            for key in ("id", "saleId", "transactionId", "transactionNumber"):
                value = container.get(key)
                if value is not None:
                    return str(value)
    return None


class SalesApiClient(BaseRemoteClient, ISaleEndpoint):
    """
    Posts sales to ``REMOTE_SALE_PATH``.

    The local id travels both as ``localId`` in the body and as an
    ``Idempotency-Key`` header. A 409 that names the already-recorded sale
    is treated as an acknowledgement of a duplicate. A success response
    that carries no sale id is not an acknowledgement.
    """

    def __init__(self, path: str | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.path = path or get_settings().remote.sale_path

    async def submit(self, payload: dict[str, Any], idempotency_key: str) -> SaleAck:
        try:
            response = await self._request(
                "POST",
                self.path,
                json=payload,
                headers={IDEMPOTENCY_HEADER: idempotency_key},
            )
        except httpx.TimeoutException as e:
            raise SaleEndpointUnreachableError(
                f"timed out after {self.timeout}s", timed_out=True
            ) from e
        except httpx.RequestError as e:
            raise SaleEndpointUnreachableError(str(e) or type(e).__name__) from e

        if response.status_code >= 500:
            raise SaleEndpointServerError(response.status_code, response.text)

        if response.status_code == 409:
            sale_id = _extract_sale_id(self._json(response))
            if sale_id is not None:
                logger.info("sale_duplicate_acknowledged", local_id=idempotency_key, sale_id=sale_id)
                return SaleAck(sale_id=sale_id, duplicate=True)

        if response.status_code >= 400:
            raise SaleRejectedError(
                error_message(response, f"HTTP {response.status_code}"),
                status_code=response.status_code,
            )

        body = self._json(response)
        sale_id = _extract_sale_id(body)
        if sale_id is None:
            # Stays queued; the replay under the same key returns the id
            logger.warning(
                "sale_ack_missing_id",
                local_id=idempotency_key,
                status_code=response.status_code,
            )
            raise SaleEndpointServerError(
                response.status_code, response.text, reason="acknowledgement without a sale id"
            )
        duplicate = bool(body.get("duplicate")) if isinstance(body, dict) else False
        return SaleAck(sale_id=sale_id, duplicate=duplicate)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None
