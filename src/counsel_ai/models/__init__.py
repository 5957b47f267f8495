from counsel_ai.models.ai_usage_log import AIUsageLog
from counsel_ai.models.base import Base
from counsel_ai.models.support_ticket import SupportTicket
from counsel_ai.models.ticket_similarity import TicketSimilarity

__all__ = [
    "AIUsageLog",
    "Base",
    "SupportTicket",
    "TicketSimilarity",
]
