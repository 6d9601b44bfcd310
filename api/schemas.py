"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from domain.enums import Floor, PaymentMethod, ProofType, RoomStatus, RoomType


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    room_number: str = Field(min_length=1)
    floor: Floor
    room_type: RoomType
    max_occupancy: int = Field(ge=1)
    status: RoomStatus = RoomStatus.AVAILABLE


class UpdateRoomRequest(BaseModel):
    """Update room request DTO"""
    room_number: Optional[str] = Field(None, min_length=1)
    floor: Optional[Floor] = None
    room_type: Optional[RoomType] = None
    max_occupancy: Optional[int] = Field(None, ge=1)
    status: Optional[RoomStatus] = None
    notes: Optional[str] = None
    expected_version: Optional[int] = None


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: UUID
    room_number: str
    floor: str
    room_type: str
    max_occupancy: int
    status: str
    created_at: datetime
    updated_at: datetime
    version: int


class RoomStatusLogResponse(BaseModel):
    """Room status log response DTO"""
    log_id: UUID
    room_id: UUID
    booking_id: Optional[UUID] = None
    status: str
    notes: Optional[str] = None
    cleaned_at: Optional[datetime] = None
    created_at: datetime


# ============================================================================
# GUEST SCHEMAS
# ============================================================================

class CreateGuestRequest(BaseModel):
    """Create guest request DTO"""
    name: str = Field(min_length=1)
    address: str = ""
    proof_type: Optional[ProofType] = None
    proof_number: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class UpdateGuestRequest(BaseModel):
    """Update guest request DTO; only fields that are sent are changed"""
    name: Optional[str] = None
    address: Optional[str] = None
    proof_type: Optional[ProofType] = None
    proof_number: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    expected_version: Optional[int] = None


class GuestResponse(BaseModel):
    """Guest response DTO"""
    guest_id: UUID
    name: str
    address: str
    proof_type: Optional[str] = None
    proof_number: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
    version: int


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class CreateBookingRequest(BaseModel):
    """Create booking request DTO"""
    room_id: UUID
    guest_id: UUID
    check_in_date: date
    check_out_date: Optional[date] = None
    number_of_guests: int = Field(ge=1)
    base_amount: Decimal = Field(ge=0)
    gst_rate: Optional[Decimal] = Field(None, ge=0)
    qr_amount: Decimal = Field(default=Decimal("0"), ge=0)
    cash_amount: Decimal = Field(default=Decimal("0"), ge=0)
    gstin: Optional[str] = None
    is_advance_booking: Optional[bool] = None


class UpdateAdvanceBookingRequest(BaseModel):
    """Edit advance booking request DTO"""
    room_id: Optional[UUID] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    number_of_guests: Optional[int] = Field(None, ge=1)
    base_amount: Optional[Decimal] = Field(None, ge=0)
    gst_rate: Optional[Decimal] = Field(None, ge=0)
    qr_amount: Optional[Decimal] = Field(None, ge=0)
    cash_amount: Optional[Decimal] = Field(None, ge=0)
    gstin: Optional[str] = None
    expected_version: Optional[int] = None


class VersionedRequest(BaseModel):
    """Request DTO carrying only the version the caller last read"""
    expected_version: Optional[int] = None


class CancelBookingRequest(BaseModel):
    """Cancel advance booking request DTO"""
    cancellation_charge: Decimal = Field(default=Decimal("0"), ge=0)
    expected_version: Optional[int] = None


class ExtendBookingRequest(BaseModel):
    """Extend stay request DTO"""
    additional_days: int = Field(ge=1)
    daily_rate: Decimal = Field(ge=0)
    gst_rate: Optional[Decimal] = Field(None, ge=0)
    qr_amount: Decimal = Field(default=Decimal("0"), ge=0)
    cash_amount: Decimal = Field(default=Decimal("0"), ge=0)
    expected_version: Optional[int] = None


class PaymentRequest(BaseModel):
    """Add payment request DTO"""
    qr_amount: Decimal = Field(default=Decimal("0"), ge=0)
    cash_amount: Decimal = Field(default=Decimal("0"), ge=0)
    expected_version: Optional[int] = None


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: UUID
    room_id: UUID
    guest_id: UUID
    check_in_date: date
    check_out_date: Optional[date] = None
    actual_check_in_time: Optional[datetime] = None
    actual_check_out_time: Optional[datetime] = None
    number_of_guests: int
    base_amount: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    qr_amount: Decimal
    cash_amount: Decimal
    payment_method: str
    extended_amount: Decimal
    outstanding_balance: Decimal
    cancellation_charge: Decimal
    refund_amount: Decimal
    cancelled_at: Optional[datetime] = None
    gstin: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime
    version: int


class CancelBookingResponse(BaseModel):
    """Cancel advance booking response DTO"""
    refund_amount: Decimal
    booking: BookingResponse


class ExtendBookingResponse(BaseModel):
    """Extend stay response DTO"""
    additional_base: Decimal
    additional_gst: Decimal
    additional_amount: Decimal
    new_check_out_date: date
    booking: BookingResponse


class BillSummaryResponse(BaseModel):
    """Bill summary response DTO"""
    booking_id: UUID
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


# ============================================================================
# REPORT SCHEMAS
# ============================================================================

class MaintenanceRoomResponse(BaseModel):
    room_id: UUID
    room_number: str
    status: str
    booking_id: Optional[UUID] = None
    guest_name: Optional[str] = None
    checkout_time: Optional[datetime] = None


class MaintenanceReportResponse(BaseModel):
    """Housekeeping report response DTO"""
    occupied_rooms: List[MaintenanceRoomResponse]
    cleaning_rooms: List[MaintenanceRoomResponse]
    available_rooms: List[MaintenanceRoomResponse]
    total_occupied: int
    total_cleaning: int
    total_available: int


class PeriodReportResponse(BaseModel):
    """Daily/monthly report response DTO"""
    label: str
    start_date: date
    end_date: date
    total_bookings: int
    total_revenue: Decimal
    occupancy_rate: float
    booking_ids: List[UUID]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    full_name: Optional[str] = None
    disabled: bool
