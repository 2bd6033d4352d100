"""
Centralized constants.
Removes "magic strings" and gives strong typing to shared values.
"""

from enum import Enum, unique


@unique
class CustomerStatus(str, Enum):
    """Customer lifecycle states."""

    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    DISABLED = "DISABLED"


@unique
class InvoiceStatus(str, Enum):
    """Invoice billing states."""

    PENDING = "PENDING"
    OVERDUE = "OVERDUE"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


@unique
class BillingCycle(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


@unique
class DataSource(str, Enum):
    """Which source answered a router read."""

    LIVE = "live"
    SYNTHETIC = "synthetic"


@unique
class RouterOsCommand(str, Enum):
    """RouterOS API command paths used by the dashboard."""

    SYSTEM_RESOURCE_PRINT = "/system/resource/print"
    PPP_SECRET_PRINT = "/ppp/secret/print"
    PPP_SECRET_ADD = "/ppp/secret/add"
    PPP_SECRET_SET = "/ppp/secret/set"
    PPP_SECRET_REMOVE = "/ppp/secret/remove"
    PPP_ACTIVE_PRINT = "/ppp/active/print"
    PPP_ACTIVE_REMOVE = "/ppp/active/remove"


# Default RouterOS API port (plain text)
API_PORT = 8728
