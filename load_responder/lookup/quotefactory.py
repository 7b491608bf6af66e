"""
QuoteFactory HTTP API lookup provider.

Authenticates through Auth0, searches loads by reference and maps the API
record onto LoadRecord. `lookup` returns every failure as an ERROR outcome;
the lower-level request methods raise QuoteFactoryAPIError.
"""
import asyncio
import time
from typing import Any, Dict, Optional, Sequence

import httpx

from ..config import QuoteFactoryConfig
from ..logger import get_logger
from ..models import Commodity, LoadRecord, LocationTime, LookupOutcome, Rate
from .auth0 import Auth0Client
from .base import LoadLookupError, LoadLookupProvider

logger = get_logger(__name__)

# Refresh the session this many seconds before the token actually expires
TOKEN_EXPIRY_MARGIN = 300
MISSING_VALUE = 'TBD'


class QuoteFactoryAPIError(LoadLookupError):
    """Raised for failed or malformed QuoteFactory API responses."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_location(location: Any) -> str:
    if not location:
        return MISSING_VALUE
    if isinstance(location, str):
        return location
    if isinstance(location, dict):
        parts = [
            location.get('city'),
            location.get('state') or location.get('province'),
            location.get('postalCode'),
        ]
        return ', '.join(str(part) for part in parts if part) or MISSING_VALUE
    return str(location)


def format_weight(weight: Any) -> str:
    if not weight:
        return MISSING_VALUE
    if _is_number(weight):
        if float(weight).is_integer():
            return f"{int(weight):,} lbs"
        return f"{weight:,} lbs"
    return str(weight)


def format_currency(amount: Any) -> str:
    if not amount:
        return MISSING_VALUE
    if _is_number(amount):
        return f"${amount:,.2f}"
    return str(amount)


def format_distance(distance: Any) -> Optional[str]:
    if distance is None or distance == '':
        return None
    if _is_number(distance):
        return f"{distance:,} mi"
    return str(distance)


def transform_load_data(api_data: Dict[str, Any]) -> LoadRecord:
    """Map a QuoteFactory load record onto LoadRecord."""
    raw_rate = api_data.get('rate') or api_data.get('customerRate')

    return LoadRecord(
        reference=str(api_data.get('referenceNumber') or api_data.get('id') or ''),
        status=api_data.get('status') or 'UNKNOWN',
        pickup=[LocationTime(
            place=format_location(api_data.get('pickupLocation')),
            date=api_data.get('pickupDate'),
            time=api_data.get('pickupTime')
        )],
        delivery=[LocationTime(
            place=format_location(api_data.get('deliveryLocation')),
            date=api_data.get('deliveryDate'),
            time=api_data.get('deliveryTime')
        )],
        commodity=Commodity(
            description=api_data.get('commodity') or 'General Freight',
            weight=format_weight(api_data.get('weight')),
            hazmat=bool(api_data.get('hazmat', False))
        ),
        rate=Rate(
            amount=float(raw_rate) if _is_number(raw_rate) else None,
            formatted=format_currency(raw_rate)
        ),
        equipment=api_data.get('equipmentType') or 'Dry Van',
        distance=format_distance(api_data.get('distance')),
        notes=api_data.get('notes') or ''
    )


class QuoteFactoryAPIProvider(LoadLookupProvider):
    """Looks up loads through the QuoteFactory REST API.

    Attributes:
        config (QuoteFactoryConfig): API location and credentials
        auth0 (Auth0Client): Token client
        http_client (httpx.AsyncClient): Shared HTTP client
    """

    def __init__(
        self,
        config: QuoteFactoryConfig,
        auth0_client: Optional[Auth0Client] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=config.timeout_ms / 1000)
        self.auth0 = auth0_client or Auth0Client(config.auth0, http_client=self.http_client)
        self.session_token: Optional[str] = None
        self.session_expiry: Optional[float] = None

    async def lookup(self, reference: str, timeout_ms: Optional[int] = None) -> LookupOutcome:
        timeout_ms = timeout_ms or self.config.timeout_ms
        timeout = timeout_ms / 1000

        try:
            record = await asyncio.wait_for(self.search_load(reference, timeout), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"QuoteFactory lookup for {reference} timed out after {timeout_ms}ms")
            return LookupOutcome.error(f"Lookup timed out after {timeout_ms}ms")
        except LoadLookupError as e:
            logger.error(f"QuoteFactory lookup for {reference} failed: {e}")
            return LookupOutcome.error(str(e))
        except httpx.HTTPError as e:
            logger.error(f"QuoteFactory transport error for {reference}: {e}")
            return LookupOutcome.error(f"Transport error: {e}")
        except Exception as e:
            logger.error(f"Unexpected QuoteFactory lookup failure for {reference}: {e}")
            return LookupOutcome.error(f"Unexpected lookup failure: {e}")

        if record is None:
            logger.info(f"Load {reference} not found in QuoteFactory")
            return LookupOutcome.not_found()

        logger.info(f"Load {reference} retrieved from QuoteFactory")
        return LookupOutcome.success(record)

    async def initialize(self, timeout: Optional[float] = None) -> None:
        """Start a new session by requesting a fresh token."""
        token = await self.auth0.get_user_token(self.config.username, self.config.password, timeout=timeout)
        self.session_token = token.access_token
        self.session_expiry = time.monotonic() + token.expires_in - TOKEN_EXPIRY_MARGIN
        logger.debug("QuoteFactory session initialized")

    async def ensure_session(self, timeout: Optional[float] = None) -> None:
        if not self.session_token or self.session_expiry is None or time.monotonic() >= self.session_expiry:
            await self.initialize(timeout)

    async def search_load(self, reference: str, timeout: Optional[float] = None) -> Optional[LoadRecord]:
        """Search for a load by reference.

        Args:
            reference: Load reference to search for
            timeout: Per-request timeout in seconds

        Returns:
            The first matching LoadRecord, or None when nothing matched

        Raises:
            QuoteFactoryAPIError: If the API answers with an error or invalid data
            AuthenticationError: If a token cannot be obtained
        """
        response = await self._authorized_request(
            'POST',
            f"{self.config.base_url}/api/v1/loads/search",
            timeout,
            json={
                'query': reference,
                'searchType': 'reference',
                'includeDetails': True
            }
        )

        if response.is_error:
            raise QuoteFactoryAPIError(
                f"Search failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code
            )

        data = self._json(response, "Search")
        results = data.get('results') if isinstance(data, dict) else None
        if not results:
            return None

        if not isinstance(results[0], dict):
            raise QuoteFactoryAPIError("Search returned an unexpected result structure")
        return transform_load_data(results[0])

    async def get_load_details(self, load_id: str, timeout: Optional[float] = None) -> LoadRecord:
        """Fetch one load by its QuoteFactory id.

        Raises:
            QuoteFactoryAPIError: If the load cannot be fetched or the body is invalid
            AuthenticationError: If a token cannot be obtained
        """
        response = await self._authorized_request(
            'GET',
            f"{self.config.base_url}/api/v1/loads/{load_id}",
            timeout
        )

        if response.is_error:
            raise QuoteFactoryAPIError(
                f"Failed to get load details: {response.status_code}",
                status_code=response.status_code
            )

        data = self._json(response, "Load details")
        if not isinstance(data, dict):
            raise QuoteFactoryAPIError("Load details returned an unexpected structure")
        return transform_load_data(data)

    async def search_multiple_loads(self, references: Sequence[str],
                                    timeout_ms: Optional[int] = None) -> Dict[str, LookupOutcome]:
        """Look up several references one after another.

        Returns:
            Mapping of reference to its LookupOutcome; one failure does not stop the rest
        """
        results: Dict[str, LookupOutcome] = {}
        for reference in references:
            results[reference] = await self.lookup(reference, timeout_ms)
        return results

    async def health_check(self) -> Dict[str, Any]:
        """Check that the API is reachable with the configured credentials."""
        try:
            await self.ensure_session()
            response = await self.http_client.get(
                f"{self.config.base_url}/api/v1/health",
                headers={'Authorization': f"Bearer {self.session_token}"}
            )
            return {
                'healthy': response.is_success,
                'status': response.status_code,
                'message': 'API is accessible' if response.is_success else 'API health check failed'
            }
        except (LoadLookupError, httpx.HTTPError) as e:
            return {
                'healthy': False,
                'status': 0,
                'message': str(e)
            }

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def _authorized_request(self, method: str, url: str, timeout: Optional[float], **kwargs) -> httpx.Response:
        await self.ensure_session(timeout)
        response = await self._send(method, url, timeout, **kwargs)

        if response.status_code == 401:
            # Token rejected, re-authenticate and retry once
            logger.info("QuoteFactory rejected the session token, re-authenticating")
            await self.initialize(timeout)
            response = await self._send(method, url, timeout, **kwargs)

        return response

    async def _send(self, method: str, url: str, timeout: Optional[float], **kwargs) -> httpx.Response:
        if timeout is not None:
            kwargs['timeout'] = timeout
        return await self.http_client.request(
            method,
            url,
            headers={
                'Authorization': f"Bearer {self.session_token}",
                'Accept': 'application/json'
            },
            **kwargs
        )

    @staticmethod
    def _json(response: httpx.Response, operation: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise QuoteFactoryAPIError(f"{operation} returned invalid JSON") from e
