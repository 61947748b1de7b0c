"""Pydantic request/response schemas."""

from ekerja.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, UserRead
from ekerja.schemas.provider_service import ProviderServiceCreate, ProviderServiceRead
from ekerja.schemas.order import (
    AttendanceUpdate, OrderCancel, OrderCreate, OrderPage, OrderRead,
    OrderStatusUpdate, VerificationSubmit,
)
from ekerja.schemas.order_detail import (
    LedgerSummary, OrderDetailCreate, OrderDetailDecision, OrderDetailRead, OrderLedgerRead,
)
from ekerja.schemas.review import (
    ReportCreate, ReportRead, ReportResolve, ReviewCreate, ReviewRead,
    ReviewUpdate, ReviewVisibilityUpdate,
)
from ekerja.schemas.chat import (
    ConversationOpen, ConversationRead, MessageCreate, MessagePage, MessageRead,
)
from ekerja.schemas.chat_access import (
    AccessRead, AccessRequestCreate, AccessRespond, AccessToggle, AdminAccessRead,
    CustomerConversationAccess, TranscriptRead,
)

__all__ = [
    "LoginRequest", "LoginResponse", "RegisterRequest", "UserRead",
    "ProviderServiceCreate", "ProviderServiceRead",
    "AttendanceUpdate", "OrderCancel", "OrderCreate", "OrderPage", "OrderRead",
    "OrderStatusUpdate", "VerificationSubmit",
    "LedgerSummary", "OrderDetailCreate", "OrderDetailDecision", "OrderDetailRead", "OrderLedgerRead",
    "ReportCreate", "ReportRead", "ReportResolve", "ReviewCreate", "ReviewRead",
    "ReviewUpdate", "ReviewVisibilityUpdate",
    "ConversationOpen", "ConversationRead", "MessageCreate", "MessagePage", "MessageRead",
    "AccessRead", "AccessRequestCreate", "AccessRespond", "AccessToggle", "AdminAccessRead",
    "CustomerConversationAccess", "TranscriptRead",
]
