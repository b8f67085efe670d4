from ..models import OperationTicket, TicketKind, TicketStatus
from .coordinator import OperationCoordinator
from .reporting import OutcomeReporter
from .tickets import TicketRegistry
from .uploads import MULTIPLE_UPLOAD_KEY, UploadPipeline

__all__ = [
    "MULTIPLE_UPLOAD_KEY",
    "OperationCoordinator",
    "OperationTicket",
    "OutcomeReporter",
    "TicketKind",
    "TicketRegistry",
    "TicketStatus",
    "UploadPipeline",
]
