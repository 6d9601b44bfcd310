"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID
from datetime import date

from domain.entities import Booking, Guest, Room, RoomStatusLog, Setting
from domain.enums import BookingStatus, RoomStatus


class RoomRepository(ABC):
    """Repository interface for Room Aggregate"""

    @abstractmethod
    async def save(self, room: Room) -> Room:
        """Save new room"""
        pass

    @abstractmethod
    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        """Find room by ID"""
        pass

    @abstractmethod
    async def find_by_number(self, room_number: str) -> Optional[Room]:
        """Find room by its display number"""
        pass

    @abstractmethod
    async def find_all(self, status: Optional[RoomStatus] = None) -> List[Room]:
        """Find all rooms ordered by room number"""
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        """Update room, rejecting stale versions"""
        pass


class GuestRepository(ABC):
    """Repository interface for Guest records"""

    @abstractmethod
    async def save(self, guest: Guest) -> Guest:
        pass

    @abstractmethod
    async def find_by_id(self, guest_id: UUID) -> Optional[Guest]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Guest]:
        pass

    @abstractmethod
    async def update(self, guest: Guest) -> Guest:
        pass

    @abstractmethod
    async def delete(self, guest_id: UUID) -> bool:
        pass


class BookingRepository(ABC):
    """Repository interface for Booking Aggregate"""

    @abstractmethod
    async def save(self, booking: Booking) -> Booking:
        """Save new booking"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        pass

    @abstractmethod
    async def find_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Find bookings, newest first"""
        pass

    @abstractmethod
    async def find_by_room(self, room_id: UUID, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Find bookings for a room"""
        pass

    @abstractmethod
    async def find_by_guest(self, guest_id: UUID) -> List[Booking]:
        """Find bookings for a guest"""
        pass

    @abstractmethod
    async def find_by_check_in_range(self, start_date: date, end_date: date) -> List[Booking]:
        """Find bookings whose check-in date falls within [start_date, end_date]"""
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking, rejecting stale versions"""
        pass


class RoomStatusLogRepository(ABC):
    """Repository interface for the append-only room status audit trail"""

    @abstractmethod
    async def append(self, entry: RoomStatusLog) -> RoomStatusLog:
        pass

    @abstractmethod
    async def find_by_room(self, room_id: UUID) -> List[RoomStatusLog]:
        """Entries for a room in the order they were written"""
        pass

    @abstractmethod
    async def find_latest(self, room_id: UUID, status: RoomStatus) -> Optional[RoomStatusLog]:
        """Most recent entry for a room with the given status"""
        pass

    @abstractmethod
    async def stamp_cleaned(self, entry: RoomStatusLog) -> RoomStatusLog:
        """Persist the cleaned_at stamp of an existing entry"""
        pass


class SettingsRepository(ABC):
    """Read-only view of the settings store"""

    @abstractmethod
    async def get_setting(self, key: str) -> Optional[Setting]:
        pass

    @abstractmethod
    async def get_gst_rate(self) -> float:
        """Configured GST rate in percent"""
        pass


class UnitOfWork(ABC):
    """Transaction boundary spanning every repository.

    Used as ``async with uow:``; leaving the block with an exception rolls
    back every write made inside it.
    """

    rooms: RoomRepository
    guests: GuestRepository
    bookings: BookingRepository
    status_logs: RoomStatusLogRepository
    settings: SettingsRepository

    @abstractmethod
    async def __aenter__(self) -> "UnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc, tb) -> bool:
        pass
