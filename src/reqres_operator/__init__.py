"""Reqres Operator: reconciles User custom resources against a reqres-style users API."""

__version__ = "0.1.0"
