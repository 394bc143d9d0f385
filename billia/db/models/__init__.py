"""
Domain-split SQLAlchemy models with a single aggregator.

Importing this package registers every table on `Base.metadata`.
"""

from .base import Base, now_utc  # re-export

from .users import User
from .profiles import UserProfile, BankAccount
from .clients import Client
from .documents import Quote, QuoteItem, Invoice, InvoiceItem
from .recurring import RecurringTemplate, RecurringTemplateItem
from .tenants import TenantGroup, Tenant
from .payments import PaymentStatus, Payment
from .expenses import Expense, Bill
from .sales import SalesCategory, CategorySalesEntry
from .audit import AuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    # users/profile
    "User",
    "UserProfile",
    "BankAccount",
    # billing documents
    "Client",
    "Quote",
    "QuoteItem",
    "Invoice",
    "InvoiceItem",
    "RecurringTemplate",
    "RecurringTemplateItem",
    # reconciliation
    "TenantGroup",
    "Tenant",
    "PaymentStatus",
    "Payment",
    # payables
    "Expense",
    "Bill",
    # sales
    "SalesCategory",
    "CategorySalesEntry",
    # audit
    "AuditLog",
]
