"""Application Services - Front desk use cases"""
import calendar
import logging
from uuid import UUID
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from domain import billing
from domain.repositories import UnitOfWork
from domain.entities import Booking, Guest, Room, RoomStatusLog
from domain.enums import BookingStatus, Floor, ProofType, RoomStatus, RoomType
from domain.exceptions import (
    ConcurrencyConflictError, InvalidTransitionError, NotFoundError, ValidationError
)
from domain.value_objects import (
    BillSummary, ExtensionCharge, MaintenanceReport, MaintenanceRoomEntry, PaymentSplit, PeriodReport
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

RELEASE_NOTE_CANCELLED = "Booking cancelled - room available"
ROOM_NOT_BOOKABLE = "Selected room is not available for advance booking"

# Marks an optional field the caller did not send, as opposed to an explicit None
UNCHANGED = object()


def _check_version(entity, expected_version: Optional[int], name: str) -> None:
    if expected_version is not None and entity.version != expected_version:
        raise ConcurrencyConflictError(name, expected_version, entity.version)


async def _record_room_status(
    uow: UnitOfWork,
    room: Room,
    status: RoomStatus,
    booking_id: Optional[UUID] = None,
    notes: Optional[str] = None
) -> Room:
    """Move a room to status and append the matching audit entry"""
    previous = room.transition_to(status)
    await uow.rooms.update(room)
    await uow.status_logs.append(
        RoomStatusLog(room_id=room.room_id, booking_id=booking_id, status=status, notes=notes)
    )
    logger.info(
        "Room %s: %s -> %s (booking=%s)", room.room_number, previous.value, status.value, booking_id
    )
    return room


class RoomService:
    """Service for Room registry use cases"""

    def __init__(self, uow: UnitOfWork, clock: Clock = datetime.now):
        self.uow = uow
        self.clock = clock

    async def create_room(
        self,
        room_number: str,
        floor: Floor,
        room_type: RoomType,
        max_occupancy: int,
        status: RoomStatus = RoomStatus.AVAILABLE
    ) -> Room:
        """Add a room to the inventory"""
        if status == RoomStatus.OCCUPIED:
            raise ValidationError("A new room cannot start occupied")

        async with self.uow:
            room = Room(
                room_number=room_number,
                floor=floor,
                room_type=room_type,
                max_occupancy=max_occupancy,
                status=status
            )
            if await self.uow.rooms.find_by_number(room.room_number):
                raise ValidationError(f"Room number {room.room_number} already exists")
            await self.uow.rooms.save(room)

        logger.info("Created room %s", room.room_number)
        return room

    async def update_room(
        self,
        room_id: UUID,
        room_number: Optional[str] = None,
        floor: Optional[Floor] = None,
        room_type: Optional[RoomType] = None,
        max_occupancy: Optional[int] = None,
        status: Optional[RoomStatus] = None,
        notes: Optional[str] = None,
        expected_version: Optional[int] = None
    ) -> Room:
        """Edit room details and, for housekeeping states, its status"""
        async with self.uow:
            room = await self._get_room_or_raise(room_id)
            _check_version(room, expected_version, "Room")

            if room_number is not None and room_number.strip() != room.room_number:
                clash = await self.uow.rooms.find_by_number(room_number.strip())
                if clash and clash.room_id != room.room_id:
                    raise ValidationError(f"Room number {room_number.strip()} already exists")

            if max_occupancy is not None:
                for stay in await self.uow.bookings.find_by_room(room.room_id, BookingStatus.CHECKED_IN):
                    if stay.number_of_guests > max_occupancy:
                        raise ValidationError(
                            f"Room is occupied by {stay.number_of_guests} guests; "
                            f"max occupancy cannot drop to {max_occupancy}"
                        )

            room.update_details(
                room_number=room_number,
                floor=floor,
                room_type=room_type,
                max_occupancy=max_occupancy
            )

            if status is not None and status != room.status:
                if RoomStatus.OCCUPIED in (status, room.status):
                    raise InvalidTransitionError(
                        "room", room.status, status,
                        "Occupied status is managed by check-in and check-out"
                    )
                await _record_room_status(self.uow, room, status, notes=notes)
            else:
                await self.uow.rooms.update(room)

        return room

    async def get_room(self, room_id: UUID) -> Optional[Room]:
        """Get room by ID"""
        return await self.uow.rooms.find_by_id(room_id)

    async def get_all_rooms(self, status: Optional[RoomStatus] = None) -> List[Room]:
        """Get all rooms ordered by room number"""
        return await self.uow.rooms.find_all(status)

    async def mark_room_cleaned(self, room_id: UUID) -> Room:
        """Finish housekeeping: cleaning -> available"""
        async with self.uow:
            room = await self._get_room_or_raise(room_id)
            if room.status != RoomStatus.CLEANING:
                raise InvalidTransitionError(
                    "room", room.status, RoomStatus.AVAILABLE,
                    f"Room {room.room_number} is not awaiting cleaning"
                )

            room.transition_to(RoomStatus.AVAILABLE)
            await self.uow.rooms.update(room)

            latest = await self.uow.status_logs.find_latest(room.room_id, RoomStatus.CLEANING)
            if latest:
                latest.stamp_cleaned(self.clock())
                await self.uow.status_logs.stamp_cleaned(latest)

        logger.info("Room %s cleaned and available", room.room_number)
        return room

    async def get_status_history(self, room_id: UUID) -> List[RoomStatusLog]:
        """Audit trail for a room, oldest first"""
        await self._get_room_or_raise(room_id)
        return await self.uow.status_logs.find_by_room(room_id)

    async def _get_room_or_raise(self, room_id: UUID) -> Room:
        room = await self.uow.rooms.find_by_id(room_id)
        if not room:
            raise NotFoundError("Room", room_id)
        return room


class GuestService:
    """Service for Guest registry use cases"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def create_guest(
        self,
        name: str,
        address: str = "",
        proof_type: Optional[ProofType] = None,
        proof_number: Optional[str] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None
    ) -> Guest:
        """Register a guest; proof may be deferred for advance bookings"""
        if not name or not name.strip():
            raise ValidationError("Guest name is required")
        Guest.validate_proof(proof_type, proof_number)

        async with self.uow:
            guest = Guest(
                name=name,
                address=address,
                proof_type=proof_type,
                proof_number=proof_number,
                phone=phone,
                email=email
            )
            await self.uow.guests.save(guest)
        return guest

    async def update_guest(self, guest_id: UUID, expected_version: Optional[int] = None, **fields) -> Guest:
        """Update guest identity, proof and contact fields"""
        allowed = {'name', 'address', 'proof_type', 'proof_number', 'phone', 'email'}
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(f"Unknown guest fields: {', '.join(sorted(unknown))}")

        async with self.uow:
            guest = await self._get_guest_or_raise(guest_id)
            _check_version(guest, expected_version, "Guest")
            guest.update_details(**fields)
            await self.uow.guests.update(guest)
        return guest

    async def get_guest(self, guest_id: UUID) -> Optional[Guest]:
        return await self.uow.guests.find_by_id(guest_id)

    async def get_all_guests(self) -> List[Guest]:
        return await self.uow.guests.find_all()

    async def delete_guest(self, guest_id: UUID) -> bool:
        """Delete a guest that no booking has ever referenced"""
        async with self.uow:
            await self._get_guest_or_raise(guest_id)
            if await self.uow.bookings.find_by_guest(guest_id):
                raise ValidationError("Guest has booking history and cannot be deleted")
            return await self.uow.guests.delete(guest_id)

    async def _get_guest_or_raise(self, guest_id: UUID) -> Guest:
        guest = await self.uow.guests.find_by_id(guest_id)
        if not guest:
            raise NotFoundError("Guest", guest_id)
        return guest


class BookingService:
    """Service for the booking state machine and its billing"""

    def __init__(self, uow: UnitOfWork, clock: Clock = datetime.now):
        self.uow = uow
        self.clock = clock

    def _today(self) -> date:
        return billing.normalize_billing_date(self.clock())

    # ==================== COMMANDS ====================
    async def create_booking(
        self,
        room_id: UUID,
        guest_id: UUID,
        check_in_date: date,
        number_of_guests: int,
        base_amount: Decimal,
        check_out_date: Optional[date] = None,
        gst_rate: Optional[Decimal] = None,
        qr_amount: Decimal = billing.ZERO,
        cash_amount: Decimal = billing.ZERO,
        gstin: Optional[str] = None,
        is_advance_booking: Optional[bool] = None,
        actual_check_in_time: Optional[datetime] = None
    ) -> Booking:
        """Create a walk-in stay (checked in) or an advance booking (reserved)"""
        async with self.uow:
            room = await self._get_room_or_raise(room_id)
            guest = await self._get_guest_or_raise(guest_id)

            if gst_rate is None:
                gst_rate = Decimal(str(await self.uow.settings.get_gst_rate()))

            booking = Booking.create(
                room=room,
                guest=guest,
                check_in_date=check_in_date,
                check_out_date=check_out_date,
                number_of_guests=number_of_guests,
                base_amount=base_amount,
                gst_rate=gst_rate,
                payment=PaymentSplit(qr_amount=qr_amount, cash_amount=cash_amount),
                today=self._today(),
                now=self.clock(),
                is_advance_booking=is_advance_booking,
                gstin=gstin,
                actual_check_in_time=actual_check_in_time
            )

            if booking.status == BookingStatus.CHECKED_IN:
                await self._ensure_room_free(room)
            elif not room.is_bookable():
                raise ValidationError(ROOM_NOT_BOOKABLE)

            await self.uow.bookings.save(booking)

            if booking.status == BookingStatus.CHECKED_IN:
                await _record_room_status(self.uow, room, RoomStatus.OCCUPIED, booking.booking_id)

        logger.info(
            "Created %s booking %s for room %s (total=%s, paid=%s)",
            booking.status.value, booking.booking_id, room.room_number,
            booking.total_amount, booking.amount_paid
        )
        return booking

    async def confirm_advance_booking(self, booking_id: UUID, expected_version: Optional[int] = None) -> Booking:
        """Guest has arrived for a reservation: reserved -> checked_in"""
        async with self.uow:
            booking = await self._get_booking_or_raise(booking_id, expected_version)
            guest = await self._get_guest_or_raise(booking.guest_id)
            room = await self._get_room_or_raise(booking.room_id)

            booking.confirm_arrival(guest, self._today(), self.clock())
            await self._ensure_room_free(room)

            await self.uow.bookings.update(booking)
            await _record_room_status(self.uow, room, RoomStatus.OCCUPIED, booking.booking_id)

        logger.info("Confirmed advance booking %s", booking.booking_id)
        return booking

    async def update_advance_booking(
        self,
        booking_id: UUID,
        room_id: Optional[UUID] = None,
        check_in_date: Optional[date] = None,
        check_out_date=UNCHANGED,
        number_of_guests: Optional[int] = None,
        base_amount: Optional[Decimal] = None,
        gst_rate: Optional[Decimal] = None,
        qr_amount: Optional[Decimal] = None,
        cash_amount: Optional[Decimal] = None,
        gstin=UNCHANGED,
        expected_version: Optional[int] = None
    ) -> Booking:
        """Edit a reservation, moving it to another room if asked.

        check_out_date and gstin may be cleared by passing None explicitly.
        """
        async with self.uow:
            booking = await self._get_booking_or_raise(booking_id, expected_version)
            old_room_id = booking.room_id
            new_room = await self._get_room_or_raise(room_id or old_room_id)
            room_changed = new_room.room_id != old_room_id

            booking.reschedule(
                room=new_room,
                check_in_date=check_in_date or booking.check_in_date,
                check_out_date=booking.check_out_date if check_out_date is UNCHANGED else check_out_date,
                number_of_guests=number_of_guests if number_of_guests is not None else booking.number_of_guests,
                base_amount=base_amount if base_amount is not None else booking.base_amount,
                gst_rate=gst_rate if gst_rate is not None else booking.gst_rate,
                payment=PaymentSplit(
                    qr_amount=qr_amount if qr_amount is not None else booking.qr_amount,
                    cash_amount=cash_amount if cash_amount is not None else booking.cash_amount
                ),
                gstin=booking.gstin if gstin is UNCHANGED else gstin
            )

            if room_changed and not new_room.is_bookable():
                raise ValidationError(ROOM_NOT_BOOKABLE)

            await self.uow.bookings.update(booking)

            if room_changed:
                await self._release_room(
                    old_room_id, booking.booking_id,
                    notes=f"Advance booking moved to room {new_room.room_number}",
                    keep_if_reserved=True
                )

        logger.info("Updated advance booking %s", booking.booking_id)
        return booking

    async def cancel_advance_booking(
        self,
        booking_id: UUID,
        cancellation_charge: Decimal = billing.ZERO,
        expected_version: Optional[int] = None
    ) -> Booking:
        """Cancel a reservation; the refund is stored on the returned booking"""
        async with self.uow:
            booking = await self._get_booking_or_raise(booking_id, expected_version)
            refund = booking.cancel(cancellation_charge, self.clock())
            await self.uow.bookings.update(booking)

            # Guest record is kept for refund/dispute history
            await self._release_room(booking.room_id, booking.booking_id, notes=RELEASE_NOTE_CANCELLED)

        logger.info(
            "Cancelled booking %s (charge=%s, refund=%s)",
            booking.booking_id, booking.cancellation_charge, refund
        )
        return booking

    async def check_out(self, booking_id: UUID, expected_version: Optional[int] = None) -> Booking:
        """Conclude a stay and send the room to housekeeping"""
        async with self.uow:
            booking = await self._get_booking_or_raise(booking_id, expected_version)
            room = await self._get_room_or_raise(booking.room_id)

            booking.check_out(self._today(), self.clock())
            await self.uow.bookings.update(booking)
            await _record_room_status(self.uow, room, RoomStatus.CLEANING, booking.booking_id)

        logger.info(
            "Checked out booking %s (outstanding=%s)", booking.booking_id, booking.outstanding_balance
        )
        return booking

    async def extend_booking(
        self,
        booking_id: UUID,
        additional_days: int,
        daily_rate: Decimal,
        gst_rate: Optional[Decimal] = None,
        qr_amount: Decimal = billing.ZERO,
        cash_amount: Decimal = billing.ZERO,
        expected_version: Optional[int] = None
    ) -> Tuple[Booking, ExtensionCharge]:
        """Add nights to a stay; any payment taken with it may be partial"""
        async with self.uow:
            booking = await self._get_booking_or_raise(booking_id, expected_version)
            charge = booking.extend(
                additional_days,
                daily_rate,
                gst_rate,
                PaymentSplit(qr_amount=qr_amount, cash_amount=cash_amount)
            )
            await self.uow.bookings.update(booking)

        logger.info(
            "Extended booking %s by %s day(s), +%s", booking.booking_id, additional_days, charge.additional_total
        )
        return booking, charge

    async def update_payment(
        self,
        booking_id: UUID,
        qr_amount: Decimal = billing.ZERO,
        cash_amount: Decimal = billing.ZERO,
        expected_version: Optional[int] = None
    ) -> Booking:
        """Take a further cash/QR payment against the outstanding balance"""
        payment = PaymentSplit(qr_amount=qr_amount, cash_amount=cash_amount)
        if payment.total <= 0:
            raise ValidationError("Payment amount must be greater than 0")

        async with self.uow:
            booking = await self._get_booking_or_raise(booking_id, expected_version)
            applied = booking.add_payment(payment)
            await self.uow.bookings.update(booking)

        if applied.total < payment.total:
            logger.info(
                "Payment on booking %s trimmed from %s to %s", booking.booking_id, payment.total, applied.total
            )
        return booking

    # ==================== QUERIES ====================
    async def get_booking(self, booking_id: UUID) -> Optional[Booking]:
        return await self.uow.bookings.find_by_id(booking_id)

    async def get_all_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        return await self.uow.bookings.find_all(status)

    async def get_active_booking_by_room(self, room_id: UUID) -> Optional[Booking]:
        stays = await self.uow.bookings.find_by_room(room_id, BookingStatus.CHECKED_IN)
        return stays[0] if stays else None

    async def get_bookings_by_guest(self, guest_id: UUID) -> List[Booking]:
        return await self.uow.bookings.find_by_guest(guest_id)

    async def get_bill_summary(self, booking_id: UUID) -> BillSummary:
        booking = await self.uow.bookings.find_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking.bill_summary()

    # ==================== PRIVATE METHODS ====================
    async def _ensure_room_free(self, room: Room) -> None:
        """A stay may only start in an available room nobody is staying in"""
        if await self.uow.bookings.find_by_room(room.room_id, BookingStatus.CHECKED_IN):
            raise ValidationError(f"Room {room.room_number} is already occupied")
        if room.status != RoomStatus.AVAILABLE:
            raise ValidationError(f"Room {room.room_number} is {room.status.value} and cannot be checked into")

    async def _release_room(
        self,
        room_id: UUID,
        booking_id: UUID,
        notes: str,
        keep_if_reserved: bool = False
    ) -> Optional[Room]:
        """Hand a room back to the available pool after a reservation leaves it.

        Rooms held by a stay or under housekeeping keep their status, as does
        a room still promised to another reservation when keep_if_reserved.
        """
        room = await self.uow.rooms.find_by_id(room_id)
        if room is None or room.status != RoomStatus.AVAILABLE:
            return None

        if keep_if_reserved:
            others = [
                b for b in await self.uow.bookings.find_by_room(room_id, BookingStatus.RESERVED)
                if b.booking_id != booking_id
            ]
            if others:
                return None

        return await _record_room_status(self.uow, room, RoomStatus.AVAILABLE, booking_id, notes)

    async def _get_booking_or_raise(self, booking_id: UUID, expected_version: Optional[int] = None) -> Booking:
        booking = await self.uow.bookings.find_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        _check_version(booking, expected_version, "Booking")
        return booking

    async def _get_room_or_raise(self, room_id: UUID) -> Room:
        room = await self.uow.rooms.find_by_id(room_id)
        if not room:
            raise NotFoundError("Room", room_id)
        return room

    async def _get_guest_or_raise(self, guest_id: UUID) -> Guest:
        guest = await self.uow.guests.find_by_id(guest_id)
        if not guest:
            raise NotFoundError("Guest", guest_id)
        return guest


class ReportService:
    """Read-only summaries over rooms and bookings"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def maintenance_report(self) -> MaintenanceReport:
        """Rooms grouped by occupied / cleaning / available"""
        report = MaintenanceReport()
        rooms = await self.uow.rooms.find_all()
        guests = {g.guest_id: g for g in await self.uow.guests.find_all()}

        for room in rooms:
            entry = MaintenanceRoomEntry(room_id=room.room_id, room_number=room.room_number, status=room.status)

            if room.status == RoomStatus.OCCUPIED:
                stays = await self.uow.bookings.find_by_room(room.room_id, BookingStatus.CHECKED_IN)
                if stays:
                    entry.booking_id = stays[0].booking_id
                    entry.guest_name = getattr(guests.get(stays[0].guest_id), 'name', None)
                report.occupied_rooms.append(entry)
            elif room.status == RoomStatus.CLEANING:
                departures = await self.uow.bookings.find_by_room(room.room_id, BookingStatus.CHECKED_OUT)
                if departures:
                    last = max(departures, key=lambda b: b.actual_check_out_time or datetime.min)
                    entry.booking_id = last.booking_id
                    entry.guest_name = getattr(guests.get(last.guest_id), 'name', None)
                    entry.checkout_time = last.actual_check_out_time
                report.cleaning_rooms.append(entry)
            elif room.status == RoomStatus.AVAILABLE:
                report.available_rooms.append(entry)

        return report

    async def daily_report(self, day: date) -> PeriodReport:
        bookings = await self._bookings_between(day, day)
        total_rooms = await self._countable_rooms()
        occupied = len({b.room_id for b in bookings})
        return self._period_report(day.isoformat(), day, day, bookings, occupied / total_rooms * 100)

    async def monthly_report(self, year: int, month: int) -> PeriodReport:
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")

        days_in_month = calendar.monthrange(year, month)[1]
        start = date(year, month, 1)
        end = start + timedelta(days=days_in_month - 1)
        bookings = await self._bookings_between(start, end)
        total_rooms = await self._countable_rooms()
        rate = len(bookings) / (total_rooms * days_in_month) * 100
        return self._period_report(start.strftime("%B %Y"), start, end, bookings, rate)

    async def yearly_report(self, year: int) -> List[PeriodReport]:
        """One monthly report per calendar month of the year, January first"""
        return [await self.monthly_report(year, month) for month in range(1, 13)]

    async def date_range_report(self, start_date: date, end_date: date) -> PeriodReport:
        """Bookings checking in between the two dates, both inclusive"""
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")

        days = (end_date - start_date).days + 1
        bookings = sorted(await self._bookings_between(start_date, end_date), key=lambda b: b.check_in_date)
        total_rooms = await self._countable_rooms()
        rate = len(bookings) / (total_rooms * days) * 100
        label = f"{start_date.strftime('%b %d, %Y')} - {end_date.strftime('%b %d, %Y')}"
        return self._period_report(label, start_date, end_date, bookings, rate)

    async def _bookings_between(self, start: date, end: date) -> List[Booking]:
        bookings = await self.uow.bookings.find_by_check_in_range(start, end)
        return [b for b in bookings if b.status != BookingStatus.CANCELLED]

    async def _countable_rooms(self) -> int:
        # Dormitories are sold per bed and skew occupancy
        rooms = [r for r in await self.uow.rooms.find_all() if r.room_type != RoomType.DORMITORY]
        return len(rooms) or 1

    @staticmethod
    def _period_report(label, start, end, bookings, occupancy_rate) -> PeriodReport:
        return PeriodReport(
            label=label,
            start_date=start,
            end_date=end,
            total_bookings=len(bookings),
            total_revenue=billing.to_money(sum((b.amount_paid for b in bookings), billing.ZERO)),
            occupancy_rate=round(occupancy_rate, 2),
            booking_ids=[b.booking_id for b in bookings]
        )
