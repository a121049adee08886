import enum

from sqlalchemy import (
    Boolean,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)

from .database import Base, UTCDateTime, utcnow


class Role(str, enum.Enum):
    """Internal roles. Customers have no account and no role."""

    ADMIN = "ADMIN"
    STAFF = "STAFF"


class AppointmentStatus(str, enum.Enum):
    REQUESTED = "REQUESTED"
    CONFIRMED = "CONFIRMED"
    RESCHEDULED = "RESCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    NOSHOW = "NOSHOW"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(80), unique=True, index=True, nullable=False)
    role = Column(Enum(Role, native_enum=False, length=20), nullable=False, default=Role.STAFF)
    active = Column(Boolean, default=True, nullable=False)
    version = Column(Integer, nullable=False, default=1)  # Optimistic locking counter

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class Customer(Base):
    """Minimal customer record keyed by phone number.

    Appointments reference customers by id only; deactivating a customer
    never touches its appointments.
    """

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(30), unique=True, index=True, nullable=False)  # E.164
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def display_name(self):
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else None


class DetailService(Base):
    """Catalogue entry used to seed duration and price of requested bookings"""

    __tablename__ = "detail_services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False, index=True)
    description = Column(Text, nullable=True)
    min_minutes = Column(Integer, nullable=False)
    default_minutes = Column(Integer, nullable=False)
    max_minutes = Column(Integer, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Plain foreign keys; lookups go through the repositories
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("detail_services.id"), nullable=True)
    assigned_staff_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Car info
    car_brand = Column(String(80), nullable=False)
    car_model = Column(String(80), nullable=True)
    description = Column(Text, nullable=True)

    # Planning: [start_time, end_time)
    start_time = Column(UTCDateTime, nullable=False, index=True)
    end_time = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    price = Column(Numeric(10, 2), nullable=True)
    status = Column(
        Enum(AppointmentStatus, native_enum=False, length=20),
        nullable=False,
        default=AppointmentStatus.REQUESTED,
        index=True,
    )
    cancel_reason = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (Index("idx_appt_assigned_start", "assigned_staff_id", "start_time"),)
