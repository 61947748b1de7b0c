"""SQLAlchemy ORM models. All rows share one declarative Base."""

from ekerja.models.base import Base
from ekerja.models.user import User, UserSession
from ekerja.models.provider_service import ProviderService
from ekerja.models.order import Order, OrderDetail
from ekerja.models.review import Review, ReviewReport
from ekerja.models.chat import ChatConversation, ChatParticipant, ChatMessage
from ekerja.models.chat_admin_access import ChatAdminAccess

__all__ = [
    "Base",
    "User", "UserSession",
    "ProviderService",
    "Order", "OrderDetail",
    "Review", "ReviewReport",
    "ChatConversation", "ChatParticipant", "ChatMessage",
    "ChatAdminAccess",
]
