import httpx
import asyncio
import json
from typing import Dict, Any, Optional
from urllib.parse import quote
import logging

from src.core.settings import get_easyship_settings
from src.services.ecommerce.shipments.easyship_mapper import EasyshipMapper

logger = logging.getLogger(__name__)


class EasyshipClientError(Exception):
    """Base error raised by EasyshipClient"""


class EasyshipConfigurationError(EasyshipClientError):
    """Client is not configured (missing token): nothing was sent"""


class EasyshipTransportError(EasyshipClientError):
    """No definitive response from Easyship (timeout, connection error, unreadable reply)"""


class EasyshipHttpError(EasyshipClientError):
    """Easyship answered with an HTTP error status"""

    def __init__(self, status_code: int, message: str, data: Any = None, error_code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.data = data
        self.error_code = error_code
        super().__init__(f"Easyship request failed ({status_code}): {message}")

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500 or self.status_code == 429


class EasyshipClient:
    """Easyship public API (2024-09) HTTP client with bearer authentication"""

    def __init__(self):
        self.settings = get_easyship_settings()
        self.mapper = EasyshipMapper()

    async def get_rates(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Request rates for one parcel.

        Args:
            payload: Easyship rates payload (see EasyshipMapper.build_rates_payload)

        Returns:
            Easyship API response as dict
        """
        return await self._request("POST", "/rates", payload=payload, retry=True)

    async def create_shipment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create an Easyship shipment. Not retried: a lost response may still have created it"""
        return await self._request("POST", "/shipments", payload=payload, retry=False)

    async def purchase_label(self, shipment_id: str, courier_service_id: str) -> Dict[str, Any]:
        """Buy the label of an existing shipment. Never retried automatically"""
        path = f"/shipments/{quote(shipment_id, safe='')}/purchase"
        return await self._request("POST", path, payload={"courier_service_id": courier_service_id}, retry=False)

    async def get_shipment(self, shipment_id: str) -> Dict[str, Any]:
        """Read an Easyship shipment (label status, tracking, cost)"""
        path = f"/shipments/{quote(shipment_id, safe='')}"
        return await self._request("GET", path, retry=True)

    def _get_headers(self) -> Dict[str, str]:
        token = (self.settings.easyship_token or "").strip()
        if not token:
            raise EasyshipConfigurationError("EASYSHIP_TOKEN is not configured")
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        retry: bool = True
    ) -> Dict[str, Any]:
        headers = self._get_headers()
        url = f"{self.settings.base_url}{path if path.startswith('/') else '/' + path}"

        logger.info(f"Easyship Request: {method} {url}")
        if self.settings.easyship_debug:
            logger.info(
                f"Easyship Request Payload Shape: "
                f"{json.dumps(self.mapper.summarize_payload_shape(payload), ensure_ascii=False)}"
            )

        max_retries = self.settings.easyship_max_retries if retry else 0
        try:
            async with httpx.AsyncClient(timeout=self.settings.easyship_timeout_seconds) as client:
                response = await self._make_request_with_retry(
                    client, method, url, max_retries, headers=headers, json=payload
                )
        except (httpx.TimeoutException, httpx.RequestError) as e:
            raise EasyshipTransportError(f"Easyship {method} {path} failed without response: {e}") from e

        logger.info(f"Easyship Response Status: {response.status_code}")

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = None

        if response.status_code >= 400:
            message = self.mapper.extract_error_message(data, fallback=response.text or "Easyship request failed")
            error_code = self.mapper.extract_error_code(data)
            logger.warning(f"Easyship {method} {path} failed ({response.status_code}): {message}")
            raise EasyshipHttpError(response.status_code, message, data, error_code)

        if data is None:
            raise EasyshipTransportError(f"Easyship {method} {path} returned an unreadable response")

        return data

    async def _make_request_with_retry(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        max_retries: int,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic for 429 and 5xx errors

        Args:
            client: httpx client instance
            method: HTTP method
            url: Request URL
            max_retries: Retries after the first attempt (0 disables retries)
            **kwargs: Additional request parameters

        Returns:
            httpx Response object (the last one when retries are exhausted)
        """
        base_delay = self.settings.easyship_retry_base_delay

        for attempt in range(max_retries + 1):
            try:
                response = await client.request(method, url, **kwargs)

                if response.status_code < 500 and response.status_code != 429:
                    return response

                if attempt < max_retries:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Easyship API request failed with status {response.status_code}, "
                        f"retrying in {delay}s (attempt {attempt + 1}/{max_retries + 1})"
                    )
                    await asyncio.sleep(delay)
                    continue

                logger.error(f"Easyship API request failed after {max_retries} retries")
                return response

            except httpx.TimeoutException:
                if attempt < max_retries:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(f"Easyship API request timeout, retrying in {delay}s")
                    await asyncio.sleep(delay)
                    continue
                logger.error("Easyship API request timeout after all retries")
                raise
            except httpx.RequestError as e:
                if attempt < max_retries:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(f"Easyship API request error: {e}, retrying in {delay}s")
                    await asyncio.sleep(delay)
                    continue
                logger.error(f"Easyship API request error after all retries: {e}")
                raise

        raise EasyshipTransportError("Easyship request failed after all retries")
