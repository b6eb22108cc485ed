"""Remote users API client."""

from .base import UsersAPI
from .client import ReqresClient

__all__ = ["ReqresClient", "UsersAPI"]
