"""Domain Exceptions"""


class BookingDomainError(ValueError):
    """Base class for every error raised by the booking domain"""


class ValidationError(BookingDomainError):
    """Input breaks a business rule (capacity, payment split, proof pairing...)"""


class InvalidTransitionError(BookingDomainError):
    """Requested status change is not legal from the current status"""

    def __init__(self, entity: str, current, target, message: str = None):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(message or (
            f"Cannot move {entity} from {getattr(current, 'value', current)} "
            f"to {getattr(target, 'value', target)}"
        ))


class NotFoundError(BookingDomainError):
    """Referenced booking, room or guest does not exist"""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class ConcurrencyConflictError(BookingDomainError):
    """Entity was changed by someone else since it was read"""

    def __init__(self, entity: str, expected: int, actual: int):
        self.entity = entity
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{entity} was modified concurrently (expected version {expected}, found {actual})"
        )
