"""Domain Enums"""
from enum import Enum


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"

    def can_transition_to(self, target: "RoomStatus") -> bool:
        """Check if room may move from this status to target"""
        return target in ROOM_TRANSITIONS[self]


class RoomType(str, Enum):
    STANDARD = "standard"
    DELUXE = "deluxe"
    COTTAGE = "cottage"
    DORMITORY = "dormitory"


class Floor(str, Enum):
    GROUND = "ground"
    FIRST = "first"
    COTTAGE = "cottage"


class ProofType(str, Enum):
    AADHAR = "aadhar"
    PAN = "pan"
    DRIVING_LICENSE = "driving_license"


class BookingStatus(str, Enum):
    RESERVED = "reserved"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"

    def can_transition_to(self, target: "BookingStatus") -> bool:
        """Check if booking may move from this status to target"""
        return target in BOOKING_TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not BOOKING_TRANSITIONS[self]


class PaymentMethod(str, Enum):
    CASH = "cash"
    QR = "qr"
    MIXED = "mixed"


# Releasing a reservation re-affirms an available room, hence available -> available.
ROOM_TRANSITIONS = {
    RoomStatus.AVAILABLE: frozenset({
        RoomStatus.AVAILABLE, RoomStatus.OCCUPIED, RoomStatus.CLEANING, RoomStatus.MAINTENANCE
    }),
    RoomStatus.OCCUPIED: frozenset({RoomStatus.CLEANING}),
    RoomStatus.CLEANING: frozenset({RoomStatus.AVAILABLE, RoomStatus.MAINTENANCE}),
    RoomStatus.MAINTENANCE: frozenset({RoomStatus.AVAILABLE, RoomStatus.CLEANING}),
}

BOOKING_TRANSITIONS = {
    BookingStatus.RESERVED: frozenset({BookingStatus.CHECKED_IN, BookingStatus.CANCELLED}),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}
