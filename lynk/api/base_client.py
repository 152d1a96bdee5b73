"""
Base API client with common functionality
"""

from abc import ABC
from typing import Optional, Dict, Any
import httpx
from lynk.utils.logger import logger
from lynk.utils.error_handler import APIError


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a backend error body"""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value

    text = response.text.strip()
    return text[:200] if text else f"HTTP {response.status_code}"


class BaseAPIClient(ABC):
    """Base class for API clients with common functionality"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize base API client

        Args:
            base_url: Base URL for API
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.logger = logger

    async def _request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
    ) -> Any:
        """
        Make HTTP request

        Failures are reported once; nothing is retried.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            endpoint: API endpoint
            headers: Request headers
            params: Query parameters
            json_data: JSON body

        Returns:
            Decoded JSON body, or an empty dict for empty responses

        Raises:
            APIError: If the request fails
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        try:
            self.logger.debug(f"Request: {method} {url}")

            request_kwargs = {
                "method": method,
                "url": url,
                "headers": headers,
                "params": params,
            }

            if json_data is not None:
                request_kwargs["json"] = json_data
                self.logger.debug(f"Request JSON data: {json_data}")

            response = await self.client.request(**request_kwargs)

            self.logger.debug(f"Response status: {response.status_code}")
            if response.status_code >= 400:
                self.logger.warning(f"Error response body: {response.text[:1000]}")

            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            self.logger.error(f"Request failed: {e}")
            raise APIError(
                _error_message(e.response),
                error_code=str(e.response.status_code),
            ) from e

        except httpx.RequestError as e:
            self.logger.error(f"Request error: {e}")
            raise APIError(f"Network error: {e}") from e

        # Handle empty response (204 No Content or empty body)
        if response.status_code == 204 or not response.content.strip():
            return {}

        try:
            return response.json()
        except ValueError:
            return {}

    async def get(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make GET request"""
        return await self._request("GET", endpoint, headers=headers, params=params)

    async def post(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
    ) -> Any:
        """Make POST request"""
        return await self._request("POST", endpoint, headers=headers, params=params, json_data=json_data)

    async def patch(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
    ) -> Any:
        """Make PATCH request"""
        return await self._request("PATCH", endpoint, headers=headers, params=params, json_data=json_data)

    async def delete(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make DELETE request"""
        return await self._request("DELETE", endpoint, headers=headers, params=params)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
