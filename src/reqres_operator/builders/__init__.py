"""Builders for operator data structures."""

from .user import create_user_record_from_object, create_user_spec_from_spec

__all__ = ["create_user_record_from_object", "create_user_spec_from_spec"]
