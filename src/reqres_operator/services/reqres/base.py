"""Base users API interface."""

from __future__ import annotations

from typing import Protocol

from ...models import RemoteUser, UserSpec


class UsersAPI(Protocol):
    """Protocol defining the remote user operations the reconciler relies on."""

    def create_user(self, user: UserSpec) -> RemoteUser:
        """Create a user and return it with only the remote id populated."""
        ...

    def get_user(self, user_id: int) -> RemoteUser:
        """Fetch a user by remote id."""
        ...

    def update_user(self, user_id: int, user: UserSpec) -> None:
        """Push the declared fields onto an existing user."""
        ...

    def delete_user(self, user_id: int) -> bool:
        """Delete a user by remote id."""
        ...
