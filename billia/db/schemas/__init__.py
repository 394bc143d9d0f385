"""
Domain-split Pydantic schemas with a single aggregator.
"""

from .users import UserBase, User, AdminUserSummary
from .profiles import (
    BankAccountFields,
    BankAccount,
    ProfileUpdate,
    Profile,
    Settings,
    OnboardingRequest,
    ImageUpdate,
)
from .clients import ClientBase, ClientCreate, ClientUpdate, Client
from .documents import (
    LineItemInput,
    DocumentItem,
    ClientChoice,
    QuoteCreate,
    Quote,
    PublicQuoteItem,
    PublicQuote,
    AcceptLink,
    BulkConvertRequest,
    BulkConvertResult,
    InvoiceCreate,
    InvoiceUpdate,
    Invoice,
    StatusUpdate,
    BulkStatusUpdate,
    BulkStatusResult,
    Receipt,
    AgingRow,
    AgingReport,
    RecurringInvoiceSummary,
)
from .recurring import (
    RecurringItemInput,
    RecurringItem,
    RecurringTemplateBase,
    RecurringTemplateCreate,
    RecurringTemplateUpdate,
    RecurringTemplate,
    ToggleActive,
    RunResultItem,
    RunReport,
)
from .tenants import (
    TenantBase,
    TenantCreate,
    TenantUpdate,
    Tenant,
    TenantGroupCreate,
    TenantGroup,
    ImportResult,
)
from .payments import (
    PaymentCreate,
    Payment,
    PaymentStatus,
    PaymentStatusUpdate,
    ReconcileRow,
    ReconcileResult,
)
from .expenses import (
    ExpenseBase,
    ExpenseCreate,
    ExpenseUpdate,
    Expense,
    BillBase,
    BillCreate,
    BillUpdate,
    Bill,
    MarkBillPaid,
)
from .finance import MonthlyFinancial, CategoryBreakdown, TopClient, UpcomingPayment, FinanceKpi
from .sales import (
    SalesCategoryCreate,
    SalesCategory,
    SalesEntry,
    SalesEntryInput,
    SalesEntriesUpsert,
    MonthEntries,
    MonthlySalesSummary,
    CategoryAssignment,
    CategorizeResult,
    MemoParseRequest,
    DraftItem,
    InvoiceDraft,
)
from .audits import AuditLogBase, AuditLogCreate, AuditLog
