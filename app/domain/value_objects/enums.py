"""Domain enums: pure Python, no external dependencies."""

from enum import Enum


class TicketStatus(str, Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"

    def is_terminal(self) -> bool:
        return self not in (TicketStatus.PLANNED, TicketStatus.IN_PROGRESS)


class DriverMarkStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_WORK = "IN_WORK"
    COMPLETED = "COMPLETED"


class TripStatus(str, Enum):
    OK = "OK"
    ROUTE_VIOLATION = "ROUTE_VIOLATION"
    FOREIGN_AREA = "FOREIGN_AREA"
    MISMATCH_PLATE = "MISMATCH_PLATE"
    OVER_CAPACITY = "OVER_CAPACITY"
    NO_AREA_WORK = "NO_AREA_WORK"
    NO_ASSIGNMENT = "NO_ASSIGNMENT"
    SUSPICIOUS_VOLUME = "SUSPICIOUS_VOLUME"
    NO_EXIT_CAMERA = "NO_EXIT_CAMERA"
    OVER_CONTRACT_LIMIT = "OVER_CONTRACT_LIMIT"


class EventDirection(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"


class Role(str, Enum):
    AKIMAT = "AKIMAT"
    KGU = "KGU"
    CONTRACTOR = "CONTRACTOR"
    DRIVER = "DRIVER"
    LANDFILL = "LANDFILL"
