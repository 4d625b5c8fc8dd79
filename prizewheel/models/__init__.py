# Models Package
from .prize import Prize, PrizeDelivery
from .wallet import Wallet, WalletTransaction
from .spin import Spin
from .transaction import Transaction
from .user_role import UserRole
from .notification import AdminNotification, EmailLog, WebhookLog
from .pricing import PricingConfig, PricingHistory
from .audit_log import AuditLog

__all__ = [
    "Prize",
    "PrizeDelivery",
    "Wallet",
    "WalletTransaction",
    "Spin",
    "Transaction",
    "UserRole",
    "AdminNotification",
    "EmailLog",
    "WebhookLog",
    "PricingConfig",
    "PricingHistory",
    "AuditLog"
]
