"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field, validator
from uuid import UUID, uuid4
from datetime import datetime, date, timedelta
from typing import Optional
from decimal import Decimal

from domain import billing
from domain.billing import ZERO, to_money
from domain.enums import BookingStatus, Floor, PaymentMethod, ProofType, RoomStatus, RoomType
from domain.exceptions import InvalidTransitionError, ValidationError
from domain.value_objects import BillSummary, ExtensionCharge, PaymentSplit


class Room(BaseModel):
    """Room Aggregate Root Entity"""

    # Identity
    room_id: UUID = Field(default_factory=uuid4)
    room_number: str

    # Description
    floor: Floor
    room_type: RoomType
    max_occupancy: int = Field(gt=0)

    # Status
    status: RoomStatus = RoomStatus.AVAILABLE

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    @validator('room_number')
    def room_number_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Room number is required')
        return v.strip()

    # ==================== STATE TRANSITION METHODS ====================
    def transition_to(self, target: RoomStatus) -> RoomStatus:
        """Move room to target status, returning the previous one"""
        if not self.status.can_transition_to(target):
            raise InvalidTransitionError("room", self.status, target)

        previous = self.status
        self.status = target
        self.updated_at = datetime.utcnow()
        return previous

    # ==================== MODIFICATION METHODS ====================
    def update_details(
        self,
        room_number: Optional[str] = None,
        floor: Optional[Floor] = None,
        room_type: Optional[RoomType] = None,
        max_occupancy: Optional[int] = None
    ) -> None:
        if room_number is not None:
            if not room_number.strip():
                raise ValidationError("Room number is required")
            self.room_number = room_number.strip()
        if floor is not None:
            self.floor = floor
        if room_type is not None:
            self.room_type = room_type
        if max_occupancy is not None:
            if max_occupancy < 1:
                raise ValidationError("Max occupancy must be at least 1")
            self.max_occupancy = max_occupancy
        self.updated_at = datetime.utcnow()

    # ==================== QUERY METHODS ====================
    def is_bookable(self) -> bool:
        """Room can receive an advance booking"""
        return self.status not in (RoomStatus.CLEANING, RoomStatus.MAINTENANCE)


class Guest(BaseModel):
    """Guest Entity - identity and proof details"""

    guest_id: UUID = Field(default_factory=uuid4)
    name: str
    address: str = ""
    proof_type: Optional[ProofType] = None
    proof_number: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1

    class Config:
        from_attributes = True
        validate_assignment = True

    @validator('name')
    def name_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Guest name is required')
        return v.strip()

    @validator('proof_number', always=True)
    def proof_fields_paired(cls, v, values):
        Guest.validate_proof(values.get('proof_type'), v)
        return v

    def update_details(self, **fields) -> None:
        """Apply changed fields, keeping proof type and number paired"""
        for key in ('name', 'address'):
            if key in fields and fields[key] is None:
                raise ValidationError(f"Guest {key} cannot be empty")

        name = fields.get('name')
        if name is not None and not name.strip():
            raise ValidationError("Guest name is required")

        proof_type = fields.get('proof_type', self.proof_type)
        proof_number = fields.get('proof_number', self.proof_number)
        Guest.validate_proof(proof_type, proof_number)

        # proof_type goes first so the pairing check sees the new type
        for key in ('name', 'address', 'proof_type', 'proof_number', 'phone', 'email'):
            if key in fields:
                setattr(self, key, fields[key])
        self.updated_at = datetime.utcnow()

    def has_proof(self) -> bool:
        return self.proof_type is not None and bool(self.proof_number)

    @staticmethod
    def validate_proof(proof_type: Optional[ProofType], proof_number: Optional[str]) -> None:
        has_type = proof_type is not None
        has_number = bool(proof_number and proof_number.strip())
        if has_type != has_number:
            raise ValidationError("Proof type and proof number must be provided together")


class Booking(BaseModel):
    """Booking Aggregate Root Entity"""

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)

    # References to other aggregates
    room_id: UUID
    guest_id: UUID

    # Stay
    check_in_date: date
    check_out_date: Optional[date] = None
    actual_check_in_time: Optional[datetime] = None
    actual_check_out_time: Optional[datetime] = None
    number_of_guests: int = Field(ge=1)

    # Money
    base_amount: Decimal = ZERO
    gst_rate: Decimal = ZERO
    gst_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    amount_paid: Decimal = ZERO
    qr_amount: Decimal = ZERO
    cash_amount: Decimal = ZERO
    payment_method: PaymentMethod = PaymentMethod.CASH
    extended_amount: Decimal = ZERO

    # Cancellation
    cancellation_charge: Decimal = ZERO
    refund_amount: Decimal = ZERO
    cancelled_at: Optional[datetime] = None

    gstin: Optional[str] = None
    status: BookingStatus = BookingStatus.RESERVED

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        room: Room,
        guest: Guest,
        check_in_date: date,
        check_out_date: Optional[date],
        number_of_guests: int,
        base_amount: Decimal,
        gst_rate: Decimal,
        payment: PaymentSplit,
        today: date,
        now: datetime,
        is_advance_booking: Optional[bool] = None,
        gstin: Optional[str] = None,
        actual_check_in_time: Optional[datetime] = None
    ) -> "Booking":
        """Create new booking; future check-in dates become reservations"""
        check_in_date = billing.normalize_billing_date(check_in_date)

        if is_advance_booking is None:
            is_advance_booking = check_in_date > today
        elif not is_advance_booking and check_in_date > today:
            raise ValidationError("Cannot check in before the check-in date; create an advance booking instead")

        Booking._validate_dates(check_in_date, check_out_date)
        Booking._validate_occupancy(number_of_guests, room)
        base, rate, gst, total = Booking._price(base_amount, gst_rate)
        Booking._validate_payment_within_total(payment.total, total)

        if is_advance_booking:
            status = BookingStatus.RESERVED
            actual_check_in_time = None
        else:
            if not guest.has_proof():
                raise ValidationError("Guest proof is required at check-in")
            status = BookingStatus.CHECKED_IN
            actual_check_in_time = actual_check_in_time or now

        booking = Booking(
            room_id=room.room_id,
            guest_id=guest.guest_id,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
            actual_check_in_time=actual_check_in_time,
            number_of_guests=number_of_guests,
            base_amount=base,
            gst_rate=rate,
            gst_amount=gst,
            total_amount=total,
            gstin=gstin or None,
            status=status
        )
        booking._set_payment(payment.qr_amount, payment.cash_amount)
        return booking

    # ==================== STATE TRANSITION METHODS ====================
    def confirm_arrival(self, guest: Guest, today: date, now: datetime) -> None:
        """Turn a reservation into an in-house stay"""
        self._ensure_transition(BookingStatus.CHECKED_IN)

        if self.check_in_date > today:
            raise InvalidTransitionError(
                "booking", self.status, BookingStatus.CHECKED_IN,
                "Cannot confirm advance booking before check-in date"
            )
        if not guest.has_proof():
            raise ValidationError("Guest proof is required at check-in")

        self.status = BookingStatus.CHECKED_IN
        self.actual_check_in_time = now
        self._touch()

    def check_out(self, today: date, now: datetime) -> None:
        """Conclude the stay"""
        self._ensure_transition(BookingStatus.CHECKED_OUT)

        self.status = BookingStatus.CHECKED_OUT
        self.check_out_date = today
        self.actual_check_out_time = now
        self._touch()

    def cancel(self, cancellation_charge: Decimal, now: datetime) -> Decimal:
        """Cancel reservation, returning the refund owed to the guest"""
        if self.status != BookingStatus.RESERVED:
            raise InvalidTransitionError(
                "booking", self.status, BookingStatus.CANCELLED,
                "Only reserved (advance) bookings can be cancelled"
            )

        charge = to_money(cancellation_charge)
        if charge < 0:
            raise ValidationError("Cancellation charge cannot be negative")

        refund = max(ZERO, to_money(self.amount_paid - charge))

        self.status = BookingStatus.CANCELLED
        self.cancellation_charge = charge
        self.refund_amount = refund
        self.cancelled_at = now
        self._touch()
        return refund

    # ==================== MODIFICATION METHODS ====================
    def reschedule(
        self,
        room: Room,
        check_in_date: date,
        check_out_date: Optional[date],
        number_of_guests: int,
        base_amount: Decimal,
        gst_rate: Decimal,
        payment: PaymentSplit,
        gstin: Optional[str]
    ) -> None:
        """Edit a reservation in place"""
        if self.status != BookingStatus.RESERVED:
            raise InvalidTransitionError(
                "booking", self.status, self.status,
                "Only reserved (advance) bookings can be edited"
            )

        check_in_date = billing.normalize_billing_date(check_in_date)
        Booking._validate_dates(check_in_date, check_out_date)
        Booking._validate_occupancy(number_of_guests, room)
        base, rate, gst, total = Booking._price(base_amount, gst_rate)
        Booking._validate_payment_within_total(payment.total, total)

        self.room_id = room.room_id
        self.check_in_date = check_in_date
        self.check_out_date = check_out_date
        self.number_of_guests = number_of_guests
        self.base_amount = base
        self.gst_rate = rate
        self.gst_amount = gst
        self.total_amount = total
        self._set_payment(to_money(payment.qr_amount), to_money(payment.cash_amount))
        self.gstin = gstin or None
        self._touch()

    def extend(
        self,
        additional_days: int,
        daily_rate: Decimal,
        gst_rate: Optional[Decimal] = None,
        payment: Optional[PaymentSplit] = None
    ) -> ExtensionCharge:
        """Add nights to an in-house stay"""
        if self.status != BookingStatus.CHECKED_IN:
            raise InvalidTransitionError(
                "booking", self.status, self.status,
                "Only checked-in bookings can be extended"
            )
        if self.check_out_date is None:
            raise ValidationError("Cannot extend booking without checkout date")
        if additional_days < 1:
            raise ValidationError("Additional days must be at least 1")
        if daily_rate is None or Decimal(str(daily_rate)) < 0:
            raise ValidationError("Daily rate cannot be negative")

        payment = payment or PaymentSplit()
        rate = Decimal(str(gst_rate)) if gst_rate is not None else self.gst_rate
        if rate < 0:
            raise ValidationError("GST rate cannot be negative")

        additional_base = to_money(Decimal(str(daily_rate)) * additional_days)
        additional_gst = billing.gst_amount(additional_base, rate)
        additional_total = billing.total_amount(additional_base, additional_gst)

        new_total = to_money(self.total_amount + additional_total)
        Booking._validate_payment_within_total(self.amount_paid + payment.total, new_total)

        self.check_out_date = self.check_out_date + timedelta(days=additional_days)
        self.base_amount = to_money(self.base_amount + additional_base)
        self.gst_amount = to_money(self.gst_amount + additional_gst)
        self.total_amount = new_total
        self.extended_amount = to_money(self.extended_amount + additional_total)
        self._set_payment(
            to_money(self.qr_amount + payment.qr_amount),
            to_money(self.cash_amount + payment.cash_amount)
        )
        self._touch()

        return ExtensionCharge(
            additional_days=additional_days,
            daily_rate=to_money(daily_rate),
            gst_rate=rate,
            additional_base=additional_base,
            additional_gst=additional_gst,
            additional_total=additional_total,
            new_check_out_date=self.check_out_date
        )

    def add_payment(self, payment: PaymentSplit) -> PaymentSplit:
        """Record a further payment, trimmed so the booking is never overpaid.

        Returns the split actually applied.
        """
        if self.status not in (BookingStatus.RESERVED, BookingStatus.CHECKED_IN):
            raise InvalidTransitionError(
                "booking", self.status, self.status,
                f"Cannot take payment for a {self.status.value} booking"
            )

        qr, cash = billing.trim_payment(
            to_money(payment.qr_amount),
            to_money(payment.cash_amount),
            self.outstanding_balance
        )
        self._set_payment(to_money(self.qr_amount + qr), to_money(self.cash_amount + cash))
        self._touch()
        return PaymentSplit(qr_amount=qr, cash_amount=cash)

    # ==================== QUERY METHODS ====================
    @property
    def outstanding_balance(self) -> Decimal:
        return to_money(self.total_amount - self.amount_paid)

    def nights(self) -> int:
        """Billable nights so far; open stays are billed up to the default checkout"""
        check_out = self.check_out_date or billing.default_checkout_date(self.check_in_date)
        return billing.nights_billed(self.check_in_date, check_out, self.actual_check_out_time)

    def bill_summary(self) -> BillSummary:
        return BillSummary(
            nights=self.nights(),
            base_amount=self.base_amount,
            gst_rate=self.gst_rate,
            gst_amount=self.gst_amount,
            total_amount=self.total_amount,
            extended_amount=self.extended_amount,
            amount_paid=self.amount_paid,
            qr_amount=self.qr_amount,
            cash_amount=self.cash_amount,
            payment_method=self.payment_method,
            outstanding_balance=self.outstanding_balance,
            check_in_date=self.check_in_date,
            check_out_date=self.check_out_date,
            actual_check_out_time=self.actual_check_out_time
        )

    # ==================== PRIVATE METHODS ====================
    def _ensure_transition(self, target: BookingStatus) -> None:
        if not self.status.can_transition_to(target):
            raise InvalidTransitionError("booking", self.status, target)

    def _set_payment(self, qr_amount: Decimal, cash_amount: Decimal) -> None:
        # amount_paid is always derived from the split
        self.qr_amount = qr_amount
        self.cash_amount = cash_amount
        self.amount_paid = to_money(qr_amount + cash_amount)
        self.payment_method = billing.payment_method_for(qr_amount, cash_amount)

    def _touch(self) -> None:
        self.updated_at = datetime.utcnow()

    @staticmethod
    def _price(base_amount, gst_rate):
        base = to_money(base_amount)
        if base < 0:
            raise ValidationError("Base amount cannot be negative")
        rate = Decimal(str(gst_rate))
        if rate < 0:
            raise ValidationError("GST rate cannot be negative")
        gst = billing.gst_amount(base, rate)
        return base, rate, gst, billing.total_amount(base, gst)

    @staticmethod
    def _validate_dates(check_in_date: date, check_out_date: Optional[date]) -> None:
        if check_out_date is not None and check_out_date <= check_in_date:
            raise ValidationError("Check-out date must be after check-in date")

    @staticmethod
    def _validate_occupancy(number_of_guests: int, room: Room) -> None:
        if number_of_guests < 1:
            raise ValidationError("At least 1 guest is required")
        if number_of_guests > room.max_occupancy:
            raise ValidationError(
                f"Room {room.room_number} allows at most {room.max_occupancy} guests"
            )

    @staticmethod
    def _validate_payment_within_total(amount_paid: Decimal, total: Decimal) -> None:
        if to_money(amount_paid) > to_money(total):
            raise ValidationError(
                f"Payment of {to_money(amount_paid)} exceeds amount due {to_money(total)}"
            )


class RoomStatusLog(BaseModel):
    """Append-only audit record of a room status change"""

    log_id: UUID = Field(default_factory=uuid4)
    room_id: UUID
    booking_id: Optional[UUID] = None
    status: RoomStatus
    notes: Optional[str] = None
    cleaned_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True

    def stamp_cleaned(self, cleaned_at: datetime) -> None:
        if self.status != RoomStatus.CLEANING:
            raise ValidationError("Only cleaning entries can be stamped as cleaned")
        self.cleaned_at = cleaned_at


class Setting(BaseModel):
    """Key/value configuration entry owned by the settings screen"""

    key: str
    value: str
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True
