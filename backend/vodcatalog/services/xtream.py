import httpx
import json
import logging
from dataclasses import dataclass
from typing import List, Dict, Any
from urllib.parse import urlsplit
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from vodcatalog.core.config import settings
from vodcatalog.services.vod.errors import CredentialError, ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class XtreamCredentials:
    server: str
    username: str
    password: str


def parse_xtream_credentials(provider) -> XtreamCredentials:
    """Read the server/username/password triple stored in ``provider.xc_data``."""
    if not provider.xc_data:
        raise CredentialError("Provider object is missing xc_data.")
    try:
        xc_info = json.loads(provider.xc_data) if isinstance(provider.xc_data, str) else provider.xc_data
    except ValueError as e:
        raise CredentialError(f"xc_data is not valid JSON: {e}") from e
    if not isinstance(xc_info, dict):
        raise CredentialError("xc_data must be a JSON object.")

    server = xc_info.get("server")
    username = xc_info.get("username")
    password = xc_info.get("password")
    if not server or not username or not password:
        raise CredentialError("Missing server, username, or password within xc_data.")
    return XtreamCredentials(server=str(server), username=str(username), password=str(password))


def normalize_base_url(url: str) -> str:
    """Keep scheme and host only: any path or trailing slash is dropped."""
    if not url or not isinstance(url, str):
        raise CredentialError("Invalid or missing server URL.")
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        raise CredentialError(
            f'Invalid server URL format: "{url}". Please provide a valid URL (e.g., http://example.com:8080).'
        )
    return f"{parts.scheme}://{parts.netloc}"


class XtreamClient:
    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        timeout: float = None,
        retry_attempts: int = None,
        transport: httpx.BaseTransport = None,
    ):
        self.base_url = normalize_base_url(url)
        self.username = username
        self.password = password
        self.api_url = f"{self.base_url}/player_api.php"
        self.timeout = timeout if timeout is not None else settings.XC_TIMEOUT_SECONDS
        self.retry_attempts = retry_attempts or settings.XC_RETRY_ATTEMPTS
        self.transport = transport
        self.retry_wait = wait_exponential(multiplier=1, min=4, max=10)
        logger.info(f"Xtream client initialized for base URL: {self.base_url}")

    @classmethod
    def from_credentials(cls, credentials: XtreamCredentials) -> "XtreamClient":
        return cls(credentials.server, credentials.username, credentials.password)

    def _get_params(self, action: str, **kwargs) -> Dict[str, str]:
        params = {
            "username": self.username,
            "password": self.password,
            "action": action
        }
        params.update(kwargs)
        return params

    def _request(self, action: str, **kwargs) -> Any:
        fetch = retry(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self.retry_attempts),
            wait=self.retry_wait,
            reraise=True,
        )(self._request_once)
        try:
            return fetch(action, **kwargs)
        except ProviderError:
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error for {action}: {e}")
            raise ProviderError(f"Error in action '{action}': HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Error fetching {action}: {e}")
            raise ProviderError(f"Error in action '{action}': {e}") from e

    def _request_once(self, action: str, **kwargs) -> Any:
        logger.debug(f"Requesting action: {action}")
        with httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": settings.XC_USER_AGENT},
            transport=self.transport,
        ) as client:
            response = client.get(self.api_url, params=self._get_params(action, **kwargs))
            response.raise_for_status()
            if not response.content or not response.content.strip():
                raise ProviderError(f"Error in action '{action}': Empty response from provider")
            try:
                data = response.json()
            except ValueError as e:
                raise ProviderError(f"Error in action '{action}': invalid JSON response") from e
            if data is None:
                raise ProviderError(f"Error in action '{action}': Empty response from provider")
            return data

    def get_vod_categories(self) -> List[Dict]:
        return self._request("get_vod_categories")

    def get_series_categories(self) -> List[Dict]:
        return self._request("get_series_categories")

    def get_vod_streams(self) -> List[Dict]:
        return self._request("get_vod_streams")

    def get_series(self) -> List[Dict]:
        return self._request("get_series")
