"""Data models for endpoints."""

from roomlink.models.endpoint import Endpoint, ResolvedEndpoint

__all__ = ["Endpoint", "ResolvedEndpoint"]
