"""Centralized business constants for the boat tours."""

BUSINESS_NAME = "Sweet Narcisse"
BUSINESS_ADDRESS = "10 Rue de la Herse, 68000 Colmar"

# Ticket prices in euros
PRICE_ADULT = 9
PRICE_CHILD = 4
PRICE_BABY = 0

GROUP_THRESHOLD = 12  # more than this many people goes through the group request flow
TOUR_DURATION_MINUTES = 25
TOUR_BUFFER_MINUTES = 5
DEPARTURE_INTERVAL_MINUTES = 10
DEFAULT_BOAT_CAPACITY = 12

OPEN_MINUTES = 10 * 60
CLOSE_MINUTES = 18 * 60

# Bookable departure windows, in minutes since midnight (Paris wall clock)
MORNING_START = 600     # 10:00
MORNING_END = 705       # 11:45
AFTERNOON_START = 810   # 13:30
AFTERNOON_END = 1065    # 17:45

LANGUAGES = ("FR", "EN", "DE", "ES")


def normalize_language(value: str) -> str:
    """Tour languages are compared upper-case everywhere (bookings, availability, cache keys)."""
    return (value or "").strip().upper()


# Manual payment methods captured at the counter (paid as soon as recorded)
INSTANT_CAPTURE_METHODS = frozenset(
    {"cash", "paypal", "applepay", "googlepay", "voucher", "check", "ANCV", "CityPass"}
)

STAFF_ROLES = frozenset({"EMPLOYEE", "ADMIN", "SUPERADMIN"})
ADMIN_ROLES = frozenset({"ADMIN", "SUPERADMIN"})


def in_departure_window(minutes_total: int) -> bool:
    """True when a departure at this minute of the day is bookable."""
    is_morning = MORNING_START <= minutes_total <= MORNING_END
    is_afternoon = AFTERNOON_START <= minutes_total <= AFTERNOON_END
    return is_morning or is_afternoon


def rotation_index(minutes_total: int, boat_count: int) -> int:
    """Boat assigned to a departure: one boat per 10-minute slot, round robin."""
    slots_elapsed = (minutes_total - OPEN_MINUTES) // DEPARTURE_INTERVAL_MINUTES
    return slots_elapsed % boat_count


def calculate_price(adults: int, children: int, babies: int) -> int:
    return adults * PRICE_ADULT + children * PRICE_CHILD + babies * PRICE_BABY
