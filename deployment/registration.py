"""Client for the host platform's custom-action registration API."""
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)


class RegistrationError(Exception):
    """Host platform rejected a registration API call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class HostPlatformClient:
    """Registers and inspects custom actions on the host platform."""

    def __init__(self, base_url: str, api_key: str, timeout: int = 30):
        """
        Initialize the registration client.

        Args:
            base_url: Root URL of the host platform API
            api_key: API key with permission to manage custom actions
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'X-API-Key': api_key,
            'Accept': 'application/json'
        })

    def ping(self) -> bool:
        """Return True when the platform health endpoint answers with 2xx."""
        try:
            response = self.session.get(f"{self.base_url}/api/health", timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Host platform unreachable: {e}")
            return False
        return response.ok

    def register_action(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register (or replace) a custom action.

        Args:
            payload: Descriptor fields plus the script body

        Returns:
            Registration record returned by the platform

        Raises:
            RegistrationError: If the request fails or is rejected
        """
        logger.info(f"Registering custom action '{payload.get('name')}'")
        try:
            response = self.session.post(
                f"{self.base_url}/api/custom-actions",
                json=payload,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RegistrationError(f"Registration request failed: {e}") from e

        if not response.ok:
            raise RegistrationError(
                f"Registration rejected: HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError:
            return {}

    def get_action(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a registered action by name.

        Returns:
            Action record (empty if the body is not JSON), or None if no action
            with that name exists
        """
        try:
            response = self.session.get(
                f"{self.base_url}/api/custom-actions/{quote(name, safe='')}",
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RegistrationError(f"Lookup request failed: {e}") from e

        if response.status_code == 404:
            return None
        if not response.ok:
            raise RegistrationError(
                f"Lookup failed: HTTP {response.status_code}",
                status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError:
            return {}
