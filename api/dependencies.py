"""API Dependencies - Authentication and services"""
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from application.services import BookingService, GuestService, ReportService, RoomService
from domain.auth import StaffUser, StaffUserInDB
from infrastructure.config import get_settings
from infrastructure.security import SECRET_KEY, ALGORITHM, get_password_hash
from infrastructure.repositories.in_memory_repositories import InMemorySettingsRepository
from infrastructure.unit_of_work import InMemoryUnitOfWork
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

_settings = get_settings()

# Single front desk account until staff management exists
_staff_db = {
    _settings.ADMIN_USERNAME: {
        "username": _settings.ADMIN_USERNAME,
        "full_name": "Front Desk Admin",
        "plain_password": _settings.ADMIN_PASSWORD,
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174000"
    }
}

staff_db = _staff_db

_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    """Lazily hash passwords on first access"""
    if username not in _password_hash_cache:
        user = _staff_db.get(username)
        if user and "plain_password" in user:
            _password_hash_cache[username] = get_password_hash(user["plain_password"])
    return _password_hash_cache.get(username, "")


def get_user(db, username: str):
    if username in db:
        user_dict = db[username].copy()
        if "plain_password" in user_dict:
            user_dict["hashed_password"] = _get_hashed_password(username)
            del user_dict["plain_password"]
        return StaffUserInDB(**user_dict)
    return None


async def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    user = get_user(_staff_db, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: StaffUser = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


# ============================================================================
# SERVICES
# ============================================================================

@lru_cache
def get_unit_of_work() -> InMemoryUnitOfWork:
    """Process-wide store shared by every request"""
    return InMemoryUnitOfWork(settings=InMemorySettingsRepository(_settings.DEFAULT_GST_RATE))


def get_room_service(uow: InMemoryUnitOfWork = Depends(get_unit_of_work)) -> RoomService:
    return RoomService(uow)


def get_guest_service(uow: InMemoryUnitOfWork = Depends(get_unit_of_work)) -> GuestService:
    return GuestService(uow)


def get_booking_service(uow: InMemoryUnitOfWork = Depends(get_unit_of_work)) -> BookingService:
    return BookingService(uow)


def get_report_service(uow: InMemoryUnitOfWork = Depends(get_unit_of_work)) -> ReportService:
    return ReportService(uow)
