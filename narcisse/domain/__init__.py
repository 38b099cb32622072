"""Domain package: all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  user.py        Customers and staff accounts (employee record included)
  boat.py        Boats and their maintenance / battery counters
  booking.py     Bookings and named Sequence counters
  payment.py     Payments and the append-only PaymentLedger
  accounting.py  Planning blocks, daily closures, cash sessions and movements
  cms.py         Hero slides, partners and site config (draft / published)
  document.py    Employee documents and their access log
  hours.py       Staff work shifts
  contact.py     Group / private-tour requests and their follow-up status
  audit.py       Immutable request audit trail and business Log
  mixins.py      Shared UUIDMixin, TimestampMixin, SoftDeleteMixin
"""

from narcisse.domain.accounting import BlockedInterval, CashMovement, CashSession, DailyClosure
from narcisse.domain.audit import AuditTrail, Log
from narcisse.domain.boat import Boat
from narcisse.domain.booking import Booking, Sequence
from narcisse.domain.cms import HeroSlide, Partner, SiteConfig
from narcisse.domain.contact import ContactRequest
from narcisse.domain.document import EmployeeDocument, EmployeeDocumentLog
from narcisse.domain.hours import WorkShift
from narcisse.domain.payment import Payment, PaymentLedger
from narcisse.domain.user import User

__all__ = [
    "AuditTrail",
    "BlockedInterval",
    "Boat",
    "Booking",
    "CashMovement",
    "CashSession",
    "ContactRequest",
    "DailyClosure",
    "EmployeeDocument",
    "EmployeeDocumentLog",
    "HeroSlide",
    "Log",
    "Partner",
    "Payment",
    "PaymentLedger",
    "Sequence",
    "SiteConfig",
    "User",
    "WorkShift",
]
