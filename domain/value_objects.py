"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from domain.billing import ZERO, payment_method_for, to_money
from domain.enums import PaymentMethod, RoomStatus


class PaymentSplit(BaseModel):
    """Value Object for a payment broken into QR and cash parts"""
    qr_amount: Decimal = Field(default=ZERO, ge=0)
    cash_amount: Decimal = Field(default=ZERO, ge=0)

    @validator('qr_amount', 'cash_amount')
    def round_to_cents(cls, v):
        # Stored at cent precision; total is their exact sum
        return to_money(v)

    @property
    def total(self) -> Decimal:
        return self.qr_amount + self.cash_amount

    @property
    def payment_method(self) -> PaymentMethod:
        return payment_method_for(self.qr_amount, self.cash_amount)

    class Config:
        frozen = True


class ExtensionCharge(BaseModel):
    """Value Object for the charge added by a stay extension"""
    additional_days: int = Field(ge=1)
    daily_rate: Decimal
    gst_rate: Decimal
    additional_base: Decimal
    additional_gst: Decimal
    additional_total: Decimal
    new_check_out_date: date

    class Config:
        frozen = True


class BillSummary(BaseModel):
    """Value Object describing what a booking owes right now"""
    nights: int
    base_amount: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    total_amount: Decimal
    extended_amount: Decimal
    amount_paid: Decimal
    qr_amount: Decimal
    cash_amount: Decimal
    payment_method: PaymentMethod
    outstanding_balance: Decimal
    check_in_date: date
    check_out_date: Optional[date] = None
    actual_check_out_time: Optional[datetime] = None

    class Config:
        frozen = True


class MaintenanceRoomEntry(BaseModel):
    """Read model: one room line on the housekeeping report"""
    room_id: UUID
    room_number: str
    status: RoomStatus
    booking_id: Optional[UUID] = None
    guest_name: Optional[str] = None
    checkout_time: Optional[datetime] = None


class MaintenanceReport(BaseModel):
    """Read model: rooms grouped by housekeeping state"""
    occupied_rooms: List[MaintenanceRoomEntry] = []
    cleaning_rooms: List[MaintenanceRoomEntry] = []
    available_rooms: List[MaintenanceRoomEntry] = []

    @property
    def total_occupied(self) -> int:
        return len(self.occupied_rooms)

    @property
    def total_cleaning(self) -> int:
        return len(self.cleaning_rooms)

    @property
    def total_available(self) -> int:
        return len(self.available_rooms)


class PeriodReport(BaseModel):
    """Read model: bookings, revenue and occupancy for a day or month"""
    label: str
    start_date: date
    end_date: date
    total_bookings: int
    total_revenue: Decimal
    occupancy_rate: float
    booking_ids: List[UUID] = []
