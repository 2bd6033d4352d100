# ispdesk/utils/device_clients/adapter_factory.py
"""
Adapter Factory.
Builds the router adapter for a stored router. Services receive this
function as a dependency so tests can swap in adapters with fake transports.
"""

from typing import Callable

from ...models.router import RouterDevice
from .adapters.mikrotik_router import MikrotikRouterAdapter

AdapterFactory = Callable[[RouterDevice], MikrotikRouterAdapter]


def get_router_adapter(router: RouterDevice, **kwargs) -> MikrotikRouterAdapter:
    """
    Returns a new adapter for `router`.

    One adapter per operation: its connection and cache are private
    and are released when the caller closes it.
    """
    return MikrotikRouterAdapter(router, **kwargs)
