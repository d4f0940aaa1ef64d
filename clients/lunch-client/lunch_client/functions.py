"""
Functions HTTP Client
Client for the privileged create-user and delete-user functions

Uses a single shared AsyncClient started and stopped with the lunch client.
"""

from typing import Any, Dict, Optional, Union

import httpx

from shared.schemas.user import CreateUserRequest, CreateUserResponse, DeleteUserResponse
from shared.utils.logger import get_logger

from lunch_client.exceptions import FunctionCallError

logger = get_logger(__name__)


class FunctionsClient:
    """
    HTTP client for the user-lifecycle functions.

    Lifecycle:
        - Call start() when the lunch client starts
        - Call stop() when it shuts down
        - If not started, falls back to a per-request client
    """

    MAX_CONNECTIONS = 10
    MAX_KEEPALIVE = 5
    CONNECT_TIMEOUT = 5.0

    def __init__(self, base_url: str, anon_key: Optional[str] = None, timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self):
        """Initialize the shared HTTP client"""
        if self._client is not None:
            logger.warning("FunctionsClient already started")
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            limits=httpx.Limits(
                max_connections=self.MAX_CONNECTIONS,
                max_keepalive_connections=self.MAX_KEEPALIVE,
            ),
            timeout=httpx.Timeout(self.timeout, connect=self.CONNECT_TIMEOUT),
            transport=self._transport,
        )
        logger.info(f"FunctionsClient started: base_url={self.base_url}")

    async def stop(self):
        """Close the HTTP client and release resources"""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("FunctionsClient stopped")

    def _headers(self, access_token: str) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {access_token}"}
        if self.anon_key:
            headers["apikey"] = self.anon_key
        return headers

    async def _invoke(self, name: str, payload: Dict[str, Any], access_token: str) -> Dict[str, Any]:
        """POST to a function and return its success envelope"""
        try:
            if self._client:
                response = await self._client.post(f"/{name}", json=payload, headers=self._headers(access_token))
            else:
                logger.warning("FunctionsClient not started, using per-request client")
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.post(f"{self.base_url}/{name}", json=payload,
                                                 headers=self._headers(access_token))
        except httpx.TimeoutException:
            logger.error(f"Function {name} timed out")
            raise FunctionCallError(f"{name} timed out")
        except httpx.HTTPError as e:
            logger.error(f"Function {name} request failed: {e}")
            raise FunctionCallError(f"{name} request failed: {e}")

        try:
            body = response.json()
        except ValueError:
            raise FunctionCallError(f"{name} returned a non-JSON response ({response.status_code})",
                                    response.status_code)

        if not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            logger.error(f"Function {name} failed ({response.status_code}): {error}")
            raise FunctionCallError(error or f"Failed to call {name}", response.status_code)

        return body

    async def create_user(self, request: CreateUserRequest, access_token: str) -> CreateUserResponse:
        payload = request.model_dump(exclude_none=True)
        body = await self._invoke("create-user", payload, access_token)
        return CreateUserResponse.model_validate(body)

    async def delete_user(self, record_id: Union[int, str], record_type: str, auth_id: Optional[str],
                          access_token: str) -> DeleteUserResponse:
        payload = {"recordId": record_id, "recordType": record_type, "authId": auth_id}
        body = await self._invoke("delete-user", payload, access_token)
        return DeleteUserResponse.model_validate(body)
