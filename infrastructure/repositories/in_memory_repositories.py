"""In-Memory Repository Implementations"""
from typing import Optional, List, Dict
from uuid import UUID
from datetime import date, datetime

from domain.repositories import (
    BookingRepository, GuestRepository, RoomRepository, RoomStatusLogRepository, SettingsRepository
)
from domain.entities import Booking, Guest, Room, RoomStatusLog, Setting
from domain.enums import BookingStatus, RoomStatus
from domain.exceptions import ConcurrencyConflictError

DEFAULT_GST_RATE = 18.0


class _VersionedStore:
    """Dict storage that hands out copies and enforces optimistic locking"""

    entity_name = "entity"

    def __init__(self):
        self._storage: Dict[UUID, object] = {}

    def _get(self, key: UUID):
        entity = self._storage.get(key)
        return entity.model_copy(deep=True) if entity is not None else None

    def _values(self) -> list:
        return [e.model_copy(deep=True) for e in self._storage.values()]

    def _insert(self, key: UUID, entity):
        self._storage[key] = entity.model_copy(deep=True)
        return entity

    def _update(self, key: UUID, entity):
        stored = self._storage.get(key)
        if stored is None:
            raise ValueError(f"{self.entity_name} not found")
        if stored.version != entity.version:
            raise ConcurrencyConflictError(self.entity_name, entity.version, stored.version)

        entity.version += 1
        entity.updated_at = datetime.utcnow()
        self._storage[key] = entity.model_copy(deep=True)
        return entity

    def snapshot(self) -> dict:
        return {k: v.model_copy(deep=True) for k, v in self._storage.items()}

    def restore(self, snapshot: dict) -> None:
        self._storage = snapshot


class InMemoryRoomRepository(_VersionedStore, RoomRepository):
    """In-memory implementation of RoomRepository"""

    entity_name = "Room"

    async def save(self, room: Room) -> Room:
        """Save room to memory"""
        return self._insert(room.room_id, room)

    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        """Find room by ID"""
        return self._get(room_id)

    async def find_by_number(self, room_number: str) -> Optional[Room]:
        """Find room by room number"""
        for room in self._storage.values():
            if room.room_number == room_number:
                return room.model_copy(deep=True)
        return None

    async def find_all(self, status: Optional[RoomStatus] = None) -> List[Room]:
        """Find all rooms ordered by room number"""
        rooms = [r for r in self._values() if status is None or r.status == status]
        return sorted(rooms, key=lambda r: r.room_number)

    async def update(self, room: Room) -> Room:
        """Update room"""
        return self._update(room.room_id, room)


class InMemoryGuestRepository(_VersionedStore, GuestRepository):
    """In-memory implementation of GuestRepository"""

    entity_name = "Guest"

    async def save(self, guest: Guest) -> Guest:
        return self._insert(guest.guest_id, guest)

    async def find_by_id(self, guest_id: UUID) -> Optional[Guest]:
        return self._get(guest_id)

    async def find_all(self) -> List[Guest]:
        return sorted(self._values(), key=lambda g: g.created_at, reverse=True)

    async def update(self, guest: Guest) -> Guest:
        return self._update(guest.guest_id, guest)

    async def delete(self, guest_id: UUID) -> bool:
        if guest_id in self._storage:
            del self._storage[guest_id]
            return True
        return False


class InMemoryBookingRepository(_VersionedStore, BookingRepository):
    """In-memory implementation of BookingRepository"""

    entity_name = "Booking"

    async def save(self, booking: Booking) -> Booking:
        """Save booking to memory"""
        return self._insert(booking.booking_id, booking)

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        return self._get(booking_id)

    async def find_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Find bookings, newest first"""
        bookings = [b for b in self._values() if status is None or b.status == status]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    async def find_by_room(self, room_id: UUID, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Find bookings for a room"""
        return [b for b in await self.find_all(status) if b.room_id == room_id]

    async def find_by_guest(self, guest_id: UUID) -> List[Booking]:
        """Find bookings by guest ID"""
        return [b for b in await self.find_all() if b.guest_id == guest_id]

    async def find_by_check_in_range(self, start_date: date, end_date: date) -> List[Booking]:
        """Find bookings checking in between two dates inclusive"""
        return [b for b in await self.find_all() if start_date <= b.check_in_date <= end_date]

    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        return self._update(booking.booking_id, booking)


class InMemoryRoomStatusLogRepository(RoomStatusLogRepository):
    """In-memory implementation of RoomStatusLogRepository"""

    def __init__(self):
        self._entries: List[RoomStatusLog] = []

    async def append(self, entry: RoomStatusLog) -> RoomStatusLog:
        self._entries.append(entry.model_copy(deep=True))
        return entry

    async def find_by_room(self, room_id: UUID) -> List[RoomStatusLog]:
        return [e.model_copy(deep=True) for e in self._entries if e.room_id == room_id]

    async def find_latest(self, room_id: UUID, status: RoomStatus) -> Optional[RoomStatusLog]:
        for entry in reversed(self._entries):
            if entry.room_id == room_id and entry.status == status:
                return entry.model_copy(deep=True)
        return None

    async def stamp_cleaned(self, entry: RoomStatusLog) -> RoomStatusLog:
        for stored in self._entries:
            if stored.log_id == entry.log_id:
                stored.cleaned_at = entry.cleaned_at
                return entry
        raise ValueError("Room status log entry not found")

    def snapshot(self) -> list:
        return [e.model_copy(deep=True) for e in self._entries]

    def restore(self, snapshot: list) -> None:
        self._entries = snapshot


class InMemorySettingsRepository(SettingsRepository):
    """In-memory key/value settings, seeded by the settings screen or tests"""

    def __init__(self, default_gst_rate: float = DEFAULT_GST_RATE):
        self._storage: Dict[str, Setting] = {}
        self._default_gst_rate = default_gst_rate

    async def get_setting(self, key: str) -> Optional[Setting]:
        return self._storage.get(key)

    async def get_gst_rate(self) -> float:
        setting = await self.get_setting("gst_rate")
        if setting is None or not setting.value:
            return self._default_gst_rate
        try:
            return float(setting.value)
        except ValueError:
            return self._default_gst_rate

    def put(self, key: str, value: str) -> Setting:
        setting = Setting(key=key, value=value)
        self._storage[key] = setting
        return setting

    def snapshot(self) -> dict:
        return dict(self._storage)

    def restore(self, snapshot: dict) -> None:
        self._storage = snapshot
