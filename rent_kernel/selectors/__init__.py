"""Read-only selectors returning frozen DTOs."""

from rent_kernel.selectors.cheque_selector import ChequeSelector, UpcomingChequeDTO
from rent_kernel.selectors.payment_selector import PaymentSelector, ScheduleMatchDTO
from rent_kernel.selectors.schedule_selector import ScheduleEntryDTO, ScheduleSelector

__all__ = [
    "ChequeSelector",
    "UpcomingChequeDTO",
    "PaymentSelector",
    "ScheduleMatchDTO",
    "ScheduleEntryDTO",
    "ScheduleSelector",
]
