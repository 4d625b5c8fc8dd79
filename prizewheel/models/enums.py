"""
Enumerations stored as plain strings in the database
"""

import enum


class Tier(str, enum.Enum):
    """Purchase level of a spin"""
    BASIC = "basic"
    GOLD = "gold"
    VIP = "vip"


class FulfillmentType(str, enum.Enum):
    """How a prize payload reaches the winner"""
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class FulfillmentStatus(str, enum.Enum):
    """Spin fulfillment lifecycle"""
    PENDING = "pending"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class LedgerEntryType(str, enum.Enum):
    """Wallet transaction direction"""
    CREDIT = "credit"
    DEBIT = "debit"


class NotificationStatus(str, enum.Enum):
    """Admin notification workflow state"""
    PENDING = "pending"
    COMPLETED = "completed"
    DISMISSED = "dismissed"


class PaymentStatus(str, enum.Enum):
    """Legacy paid-session transaction status"""
    PAID = "paid"
    REFUNDED = "refunded"


class AppRole(str, enum.Enum):
    """Role granted through user_roles"""
    ADMIN = "admin"


TIERS = tuple(t.value for t in Tier)
