# ispdesk/api/dependencies.py
"""Shared dependencies for the API endpoints."""

from ..utils.device_clients.adapter_factory import AdapterFactory, get_router_adapter


def get_adapter_factory() -> AdapterFactory:
    """Dependency injector for the router adapter factory (overridden in tests)."""
    return get_router_adapter
