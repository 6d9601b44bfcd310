from fastapi import FastAPI, HTTPException, Depends
from uuid import UUID
from datetime import date, timedelta
from typing import List, Optional
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Rooms
    CreateRoomRequest, UpdateRoomRequest, RoomResponse, RoomStatusLogResponse,
    # Guests
    CreateGuestRequest, UpdateGuestRequest, GuestResponse,
    # Bookings
    CreateBookingRequest, UpdateAdvanceBookingRequest, VersionedRequest, CancelBookingRequest,
    ExtendBookingRequest, PaymentRequest, BookingResponse, CancelBookingResponse,
    ExtendBookingResponse, BillSummaryResponse,
    # Reports
    MaintenanceReportResponse, MaintenanceRoomResponse, PeriodReportResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import (
    get_current_active_user, staff_db, get_user,
    get_room_service, get_guest_service, get_booking_service, get_report_service, get_unit_of_work
)
from api.error_handlers import setup_exception_handlers
from infrastructure.config import get_settings
from infrastructure.logging_config import setup_logging
from infrastructure.security import verify_password, create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from domain.auth import StaffUser

from application.services import BookingService, GuestService, ReportService, RoomService
from domain.enums import BookingStatus, Floor, PaymentMethod, ProofType, RoomStatus, RoomType

settings = get_settings()
setup_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_TITLE,
    description="Room inventory, stays, split payments and housekeeping for the front desk",
    version="1.0.0"
)
setup_exception_handlers(app)

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

_ENUMS = {
    "booking-status": BookingStatus,
    "room-status": RoomStatus,
    "room-type": RoomType,
    "floor": Floor,
    "proof-type": ProofType,
    "payment-method": PaymentMethod,
}


@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}


@app.get("/api/enums/{enum_name}", tags=["Enum Reference"])
async def get_enum_values(enum_name: str):
    """Get the allowed values of a domain enum"""
    enum_cls = _ENUMS.get(enum_name)
    if enum_cls is None:
        raise HTTPException(status_code=404, detail="Unknown enum")
    return {"values": [item.value for item in enum_cls]}


@app.get("/api/settings/gst-rate", tags=["Settings"])
async def get_gst_rate(
    uow=Depends(get_unit_of_work),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """GST rate applied when a booking does not specify one"""
    return {"gst_rate": await uow.settings.get_gst_rate()}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================


@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(staff_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}


@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: StaffUser = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================


@app.post("/api/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def create_room(
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Add a room to the inventory"""
    room = await service.create_room(
        room_number=request.room_number,
        floor=request.floor,
        room_type=request.room_type,
        max_occupancy=request.max_occupancy,
        status=request.status
    )
    return _room_to_response(room)


@app.get("/api/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def get_all_rooms(
    status: Optional[RoomStatus] = None,
    service: RoomService = Depends(get_room_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Get all rooms, optionally filtered by status"""
    rooms = await service.get_all_rooms(status)
    return [_room_to_response(r) for r in rooms]


@app.get("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def get_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Get room by ID"""
    room = await service.get_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return _room_to_response(room)


@app.put("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def update_room(
    room_id: UUID,
    request: UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Edit room details or move it in/out of maintenance"""
    room = await service.update_room(room_id, **request.model_dump(exclude_unset=True))
    return _room_to_response(room)


@app.post("/api/rooms/{room_id}/clean", response_model=RoomResponse, tags=["Rooms"])
async def mark_room_cleaned(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Housekeeping finished: room becomes available"""
    room = await service.mark_room_cleaned(room_id)
    return _room_to_response(room)


@app.get("/api/rooms/{room_id}/status-log", response_model=List[RoomStatusLogResponse], tags=["Rooms"])
async def get_room_status_log(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Audit trail of a room's status changes"""
    entries = await service.get_status_history(room_id)
    return [_log_to_response(e) for e in entries]


@app.get("/api/rooms/{room_id}/active-booking", response_model=BookingResponse, tags=["Rooms"])
async def get_active_booking_for_room(
    room_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Current in-house stay for a room"""
    booking = await service.get_active_booking_by_room(room_id)
    if not booking:
        raise HTTPException(status_code=404, detail="No active booking for this room")
    return _booking_to_response(booking)

# ============================================================================
# GUEST ENDPOINTS
# ============================================================================


@app.post("/api/guests", response_model=GuestResponse, status_code=201, tags=["Guests"])
async def create_guest(
    request: CreateGuestRequest,
    service: GuestService = Depends(get_guest_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Register a guest"""
    guest = await service.create_guest(**request.model_dump())
    return _guest_to_response(guest)


@app.get("/api/guests", response_model=List[GuestResponse], tags=["Guests"])
async def get_all_guests(
    service: GuestService = Depends(get_guest_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Get all guests"""
    guests = await service.get_all_guests()
    return [_guest_to_response(g) for g in guests]


@app.get("/api/guests/{guest_id}", response_model=GuestResponse, tags=["Guests"])
async def get_guest(
    guest_id: UUID,
    service: GuestService = Depends(get_guest_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Get guest by ID"""
    guest = await service.get_guest(guest_id)
    if not guest:
        raise HTTPException(status_code=404, detail="Guest not found")
    return _guest_to_response(guest)


@app.put("/api/guests/{guest_id}", response_model=GuestResponse, tags=["Guests"])
async def update_guest(
    guest_id: UUID,
    request: UpdateGuestRequest,
    service: GuestService = Depends(get_guest_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Update guest details (e.g. proof collected at arrival)"""
    fields = request.model_dump(exclude_unset=True)
    expected_version = fields.pop("expected_version", None)
    guest = await service.update_guest(guest_id, expected_version=expected_version, **fields)
    return _guest_to_response(guest)


@app.delete("/api/guests/{guest_id}", status_code=204, tags=["Guests"])
async def delete_guest(
    guest_id: UUID,
    service: GuestService = Depends(get_guest_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Delete a guest without booking history"""
    await service.delete_guest(guest_id)

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================


@app.post("/api/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Check a guest in now, or reserve a room for a future date"""
    booking = await service.create_booking(**request.model_dump())
    return _booking_to_response(booking)


@app.get("/api/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_all_bookings(
    status: Optional[BookingStatus] = None,
    guest_id: Optional[UUID] = None,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Get bookings, newest first, optionally filtered by status or guest"""
    if guest_id:
        bookings = await service.get_bookings_by_guest(guest_id)
        if status:
            bookings = [b for b in bookings if b.status == status]
    else:
        bookings = await service.get_all_bookings(status)
    return [_booking_to_response(b) for b in bookings]


@app.get("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Get booking by ID"""
    booking = await service.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return _booking_to_response(booking)


@app.get("/api/bookings/{booking_id}/bill", response_model=BillSummaryResponse, tags=["Bookings"])
async def get_bill_summary(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Nights billed, totals and outstanding balance"""
    summary = await service.get_bill_summary(booking_id)
    return BillSummaryResponse(booking_id=booking_id, **summary.model_dump(
        include=set(BillSummaryResponse.model_fields) - {"booking_id"}
    ))


@app.put("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def update_advance_booking(
    booking_id: UUID,
    request: UpdateAdvanceBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Edit an advance booking"""
    booking = await service.update_advance_booking(booking_id, **request.model_dump(exclude_unset=True))
    return _booking_to_response(booking)


@app.post("/api/bookings/{booking_id}/confirm", response_model=BookingResponse, tags=["Bookings"])
async def confirm_advance_booking(
    booking_id: UUID,
    request: Optional[VersionedRequest] = None,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Guest with an advance booking has arrived"""
    booking = await service.confirm_advance_booking(
        booking_id, expected_version=request.expected_version if request else None
    )
    return _booking_to_response(booking)


@app.post("/api/bookings/{booking_id}/cancel", response_model=CancelBookingResponse, tags=["Bookings"])
async def cancel_advance_booking(
    booking_id: UUID,
    request: CancelBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Cancel an advance booking and compute the refund"""
    booking = await service.cancel_advance_booking(
        booking_id,
        cancellation_charge=request.cancellation_charge,
        expected_version=request.expected_version
    )
    return CancelBookingResponse(refund_amount=booking.refund_amount, booking=_booking_to_response(booking))


@app.post("/api/bookings/{booking_id}/checkout", response_model=BookingResponse, tags=["Bookings"])
async def check_out(
    booking_id: UUID,
    request: Optional[VersionedRequest] = None,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Check the guest out; the room goes to cleaning"""
    booking = await service.check_out(
        booking_id, expected_version=request.expected_version if request else None
    )
    return _booking_to_response(booking)


@app.post("/api/bookings/{booking_id}/extend", response_model=ExtendBookingResponse, tags=["Bookings"])
async def extend_booking(
    booking_id: UUID,
    request: ExtendBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Extend an in-house stay"""
    booking, charge = await service.extend_booking(booking_id, **request.model_dump())
    return ExtendBookingResponse(
        additional_base=charge.additional_base,
        additional_gst=charge.additional_gst,
        additional_amount=charge.additional_total,
        new_check_out_date=charge.new_check_out_date,
        booking=_booking_to_response(booking)
    )


@app.post("/api/bookings/{booking_id}/payments", response_model=BookingResponse, tags=["Bookings"])
async def update_payment(
    booking_id: UUID,
    request: PaymentRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Take a cash/QR payment against the outstanding balance"""
    booking = await service.update_payment(booking_id, **request.model_dump())
    return _booking_to_response(booking)

# ============================================================================
# REPORT ENDPOINTS
# ============================================================================


@app.get("/api/reports/maintenance", response_model=MaintenanceReportResponse, tags=["Reports"])
async def get_maintenance_report(
    service: ReportService = Depends(get_report_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Rooms grouped by occupied / cleaning / available"""
    report = await service.maintenance_report()
    return MaintenanceReportResponse(
        occupied_rooms=[MaintenanceRoomResponse(**e.model_dump()) for e in report.occupied_rooms],
        cleaning_rooms=[MaintenanceRoomResponse(**e.model_dump()) for e in report.cleaning_rooms],
        available_rooms=[MaintenanceRoomResponse(**e.model_dump()) for e in report.available_rooms],
        total_occupied=report.total_occupied,
        total_cleaning=report.total_cleaning,
        total_available=report.total_available
    )


@app.get("/api/reports/daily", response_model=PeriodReportResponse, tags=["Reports"])
async def get_daily_report(
    day: date,
    service: ReportService = Depends(get_report_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Bookings, revenue and occupancy for one day"""
    report = await service.daily_report(day)
    return PeriodReportResponse(**report.model_dump())


@app.get("/api/reports/monthly", response_model=PeriodReportResponse, tags=["Reports"])
async def get_monthly_report(
    year: int,
    month: int,
    service: ReportService = Depends(get_report_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Bookings, revenue and occupancy for one month"""
    report = await service.monthly_report(year, month)
    return PeriodReportResponse(**report.model_dump())


@app.get("/api/reports/yearly", response_model=List[PeriodReportResponse], tags=["Reports"])
async def get_yearly_report(
    year: int,
    service: ReportService = Depends(get_report_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Month-by-month breakdown for one year"""
    reports = await service.yearly_report(year)
    return [PeriodReportResponse(**report.model_dump()) for report in reports]


@app.get("/api/reports/range", response_model=PeriodReportResponse, tags=["Reports"])
async def get_date_range_report(
    start_date: date,
    end_date: date,
    service: ReportService = Depends(get_report_service),
    current_user: StaffUser = Depends(get_current_active_user)
):
    """Bookings, revenue and occupancy between two dates, both inclusive"""
    report = await service.date_range_report(start_date, end_date)
    return PeriodReportResponse(**report.model_dump())

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def _room_to_response(room) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse(
        room_id=room.room_id,
        room_number=room.room_number,
        floor=room.floor.value,
        room_type=room.room_type.value,
        max_occupancy=room.max_occupancy,
        status=room.status.value,
        created_at=room.created_at,
        updated_at=room.updated_at,
        version=room.version
    )


def _log_to_response(entry) -> RoomStatusLogResponse:
    """Convert RoomStatusLog entity to RoomStatusLogResponse"""
    return RoomStatusLogResponse(
        log_id=entry.log_id,
        room_id=entry.room_id,
        booking_id=entry.booking_id,
        status=entry.status.value,
        notes=entry.notes,
        cleaned_at=entry.cleaned_at,
        created_at=entry.created_at
    )


def _guest_to_response(guest) -> GuestResponse:
    """Convert Guest entity to GuestResponse"""
    return GuestResponse(
        guest_id=guest.guest_id,
        name=guest.name,
        address=guest.address,
        proof_type=guest.proof_type.value if guest.proof_type else None,
        proof_number=guest.proof_number,
        phone=guest.phone,
        email=guest.email,
        created_at=guest.created_at,
        version=guest.version
    )


def _booking_to_response(booking) -> BookingResponse:
    """Convert Booking entity to BookingResponse"""
    return BookingResponse(
        booking_id=booking.booking_id,
        room_id=booking.room_id,
        guest_id=booking.guest_id,
        check_in_date=booking.check_in_date,
        check_out_date=booking.check_out_date,
        actual_check_in_time=booking.actual_check_in_time,
        actual_check_out_time=booking.actual_check_out_time,
        number_of_guests=booking.number_of_guests,
        base_amount=booking.base_amount,
        gst_rate=booking.gst_rate,
        gst_amount=booking.gst_amount,
        total_amount=booking.total_amount,
        amount_paid=booking.amount_paid,
        qr_amount=booking.qr_amount,
        cash_amount=booking.cash_amount,
        payment_method=booking.payment_method.value,
        extended_amount=booking.extended_amount,
        outstanding_balance=booking.outstanding_balance,
        cancellation_charge=booking.cancellation_charge,
        refund_amount=booking.refund_amount,
        cancelled_at=booking.cancelled_at,
        gstin=booking.gstin,
        status=booking.status.value,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
        version=booking.version
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
