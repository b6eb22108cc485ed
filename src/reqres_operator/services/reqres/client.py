"""HTTP client for the reqres users API."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ... import metrics
from ...constants import (
    HTTP_CREATE_SUCCESS,
    HTTP_DELETE_SUCCESS,
    HTTP_GET_SUCCESS,
    HTTP_UPDATE_SUCCESS,
    USERS_API,
)
from ...exceptions import (
    InvalidResponseError,
    RemoteNotFoundError,
    TransportError,
    UnexpectedStatusError,
)
from ...models import RemoteUser, UserSpec
from ...utils.rate_limit import rate_limit_reqres

logger = logging.getLogger(__name__)


def _user_payload(user: UserSpec) -> dict[str, str]:
    """Build the request body for create and update calls."""
    return {
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
    }


class ReqresClient:
    """Users API client over a single base URL.

    The client does not retry or cache; retry policy belongs to the reconciler.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the remote API, e.g. https://reqres.in
            timeout: Per-request timeout in seconds
            http_client: Optional preconfigured httpx client (its base URL is overridden)
        """
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.Client(timeout=timeout)
        self.http_client.base_url = self.base_url

    def close(self) -> None:
        """Release pooled connections."""
        self.http_client.close()

    def __enter__(self) -> ReqresClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request and return the fully read response.

        Raises:
            TransportError: If the request could not be completed
        """
        start_time = time.time()
        try:
            response = rate_limit_reqres(self.http_client.request)(method, path, json=json)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            metrics.api_call_total.labels(api_type="reqres", operation=operation, result="error").inc()
            logger.error(f"{operation} request to {path} failed: {e}")
            raise TransportError(operation, e) from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="reqres", operation=operation).observe(duration)
        # request() reads the body and releases the connection before returning
        metrics.api_call_total.labels(api_type="reqres", operation=operation, result=str(response.status_code)).inc()
        return response

    def create_user(self, user: UserSpec) -> RemoteUser:
        """Create a user.

        The create response only echoes the assigned id, so the returned
        RemoteUser carries nothing else.
        """
        response = self._request("create_user", "POST", USERS_API, json=_user_payload(user))
        if response.status_code != HTTP_CREATE_SUCCESS:
            raise UnexpectedStatusError("create_user", response.status_code, HTTP_CREATE_SUCCESS)

        try:
            raw_id = response.json()["id"]
            user_id = int(raw_id)
        except (ValueError, KeyError, TypeError) as e:
            raise InvalidResponseError(f"create_user returned no usable id: {e}") from e
        if user_id <= 0:
            raise InvalidResponseError(f"create_user returned non-positive id {user_id}")

        logger.info(f"Created remote user {user_id}")
        return RemoteUser(id=user_id)

    def get_user(self, user_id: int) -> RemoteUser:
        """Fetch a user by id.

        Raises:
            RemoteNotFoundError: If the ok status is not returned
            TransportError: If the API could not be reached
        """
        response = self._request("get_user", "GET", f"{USERS_API}/{user_id}")
        if response.status_code != HTTP_GET_SUCCESS:
            raise RemoteNotFoundError("get_user", response.status_code, HTTP_GET_SUCCESS)

        try:
            data = response.json()["data"]
            return RemoteUser(
                id=int(data.get("id", user_id)),
                email=data.get("email") or "",
                first_name=data.get("first_name") or "",
                last_name=data.get("last_name") or "",
                avatar=data.get("avatar") or "",
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise InvalidResponseError(f"get_user returned an unreadable body: {e}") from e

    def update_user(self, user_id: int, user: UserSpec) -> None:
        """Partially update a user with the declared fields."""
        response = self._request("update_user", "PATCH", f"{USERS_API}/{user_id}", json=_user_payload(user))
        if response.status_code != HTTP_UPDATE_SUCCESS:
            raise UnexpectedStatusError("update_user", response.status_code, HTTP_UPDATE_SUCCESS)
        logger.info(f"Updated remote user {user_id}")

    def delete_user(self, user_id: int) -> bool:
        """Delete a user. Returns True once the API confirms with no content."""
        response = self._request("delete_user", "DELETE", f"{USERS_API}/{user_id}")
        if response.status_code != HTTP_DELETE_SUCCESS:
            raise UnexpectedStatusError("delete_user", response.status_code, HTTP_DELETE_SUCCESS)
        logger.info(f"Deleted remote user {user_id}")
        return True
