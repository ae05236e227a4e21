from .user import User, UserRole
from .resource import Resource, ResourceType
from .booking import Booking, BookingStatus
from .audit_log import AuditLog, ActorType
