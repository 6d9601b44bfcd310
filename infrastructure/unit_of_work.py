"""In-Memory Unit of Work"""
import asyncio
import logging
from typing import Optional

from domain.repositories import UnitOfWork
from infrastructure.repositories.in_memory_repositories import (
    InMemoryBookingRepository, InMemoryGuestRepository, InMemoryRoomRepository,
    InMemoryRoomStatusLogRepository, InMemorySettingsRepository
)

logger = logging.getLogger(__name__)


class InMemoryUnitOfWork(UnitOfWork):
    """Snapshot-and-restore transaction over the in-memory repositories.

    Units of work are serialized by a lock, so a transaction never observes
    another one half-applied. Not re-entrant: open one per use case.
    """

    def __init__(
        self,
        rooms: Optional[InMemoryRoomRepository] = None,
        guests: Optional[InMemoryGuestRepository] = None,
        bookings: Optional[InMemoryBookingRepository] = None,
        status_logs: Optional[InMemoryRoomStatusLogRepository] = None,
        settings: Optional[InMemorySettingsRepository] = None
    ):
        self.rooms = rooms or InMemoryRoomRepository()
        self.guests = guests or InMemoryGuestRepository()
        self.bookings = bookings or InMemoryBookingRepository()
        self.status_logs = status_logs or InMemoryRoomStatusLogRepository()
        self.settings = settings or InMemorySettingsRepository()
        self._lock = asyncio.Lock()
        self._snapshots = None

    def _repositories(self):
        return (self.rooms, self.guests, self.bookings, self.status_logs, self.settings)

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        await self._lock.acquire()
        self._snapshots = [repo.snapshot() for repo in self._repositories()]
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is not None:
                self.rollback()
                logger.debug("Rolled back unit of work after %s", exc_type.__name__)
        finally:
            self._snapshots = None
            self._lock.release()
        return False

    def rollback(self) -> None:
        for repo, snapshot in zip(self._repositories(), self._snapshots):
            repo.restore(snapshot)
