import enum
from typing import Optional

import httpx

from constants import AUTH_TIMEOUT, AUTH_VERIFY_PATH, BACKEND_URL
from logging_config import get_logger

logger = get_logger(__name__)


class AuthDecision(enum.Enum):
    ADMITTED = "admitted"  # no token supplied, nothing to verify
    VALID = "valid"
    INVALID = "invalid"  # authority rejected the token
    FAILED = "failed"  # authority could not be reached or answered garbage

    @property
    def admitted(self) -> bool:
        return self in (AuthDecision.ADMITTED, AuthDecision.VALID)

    @property
    def client_message(self) -> str:
        if self is AuthDecision.INVALID:
            return "Invalid or expired token"
        return "Authentication failed"


class AuthVerifier:
    """Checks bearer tokens against the external auth authority.

    One request per join attempt, never retried.
    """

    def __init__(
        self,
        base_url: str = BACKEND_URL,
        verify_path: str = AUTH_VERIFY_PATH,
        timeout: float = AUTH_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.verify_path = verify_path
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        logger.info(f"Initializing AuthVerifier against {self.base_url}{self.verify_path}")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def verify(self, token: Optional[str]) -> AuthDecision:
        if not token:
            return AuthDecision.ADMITTED

        try:
            response = await self.client.get(
                self.verify_path,
                headers={"Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Token verification failed: authority answered {e.response.status_code}")
            return AuthDecision.FAILED
        except httpx.HTTPError as e:
            logger.error(f"Token verification failed: {e.__class__.__name__}: {e}")
            return AuthDecision.FAILED
        except ValueError as e:
            logger.error(f"Token verification failed: undecodable response: {e}")
            return AuthDecision.FAILED

        if isinstance(body, dict) and body.get("valid"):
            logger.debug("Token verified")
            return AuthDecision.VALID

        logger.warning("Token rejected by auth authority")
        return AuthDecision.INVALID

    async def aclose(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed auth HTTP client")
