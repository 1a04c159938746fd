from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .session import Base


class User(Base):
    """Account of a groomer owner, staff member, client or admin"""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="CLIENT"
    )  # 'GROOMER_OWNER', 'GROOMER_STAFF', 'CLIENT', 'ADMIN'
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class GroomerBusiness(Base):
    """Grooming business and its scheduling configuration"""

    __tablename__ = "groomer_businesses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), unique=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    offers_in_salon: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    offers_at_home: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_dogs_per_home_visit: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )  # Required when offers_at_home is true
    home_visit_setup_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    home_visit_teardown_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    default_transport_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    min_hours_before_cancel_or_reschedule: Mapped[int] = mapped_column(
        Integer, nullable=False, default=24
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    owner: Mapped["User"] = relationship("User", foreign_keys=[owner_user_id])
    working_hours: Mapped[List["BusinessWorkingHour"]] = relationship(
        "BusinessWorkingHour", back_populates="business", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<GroomerBusiness(id={self.id}, name='{self.name}')>"


class BusinessWorkingHour(Base):
    """Working-hour block; weekday 0 = Sunday ... 6 = Saturday, times are local HH:MM"""

    __tablename__ = "business_working_hours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    business_id: Mapped[int] = mapped_column(
        ForeignKey("groomer_businesses.id", ondelete="CASCADE"), nullable=False
    )
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    business: Mapped["GroomerBusiness"] = relationship(
        "GroomerBusiness", back_populates="working_hours"
    )

    __table_args__ = (Index("ix_working_hours_business_weekday", "business_id", "weekday"),)


class GroomerStaffMember(Base):
    """Groomer employed by a business"""

    __tablename__ = "groomer_staff_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    business_id: Mapped[int] = mapped_column(
        ForeignKey("groomer_businesses.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("business_id", "user_id", name="uq_staff_business_user"),
    )


class Pet(Base):
    """Pet owned by a client"""

    __tablename__ = "pets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    species: Mapped[str] = mapped_column(String(10), nullable=False)  # 'DOG', 'CAT'
    size: Mapped[str] = mapped_column(String(10), nullable=False)
    breed: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self):
        return f"<Pet(id={self.id}, name='{self.name}', species='{self.species}')>"


class Service(Base):
    """Grooming service offered by a business"""

    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    business_id: Mapped[int] = mapped_column(
        ForeignKey("groomer_businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Lists of enum values, e.g. ["DOG", "CAT"] and ["IN_SALON"]
    species_supported: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    locations_supported: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    duration_rules: Mapped[List["ServiceDurationRule"]] = relationship(
        "ServiceDurationRule", back_populates="service", cascade="all, delete-orphan"
    )


class ServiceDurationRule(Base):
    """Duration of a service for a species, optionally narrowed by size or breed"""

    __tablename__ = "service_duration_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    service_id: Mapped[int] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    species: Mapped[str] = mapped_column(String(10), nullable=False)
    size: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    breed: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    base_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    is_default_for_species: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    service: Mapped["Service"] = relationship("Service", back_populates="duration_rules")


class Appointment(Base):
    """Booked interval on one groomer's calendar; times are stored in UTC"""

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    business_id: Mapped[int] = mapped_column(
        ForeignKey("groomer_businesses.id"), nullable=False
    )
    groomer_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    client_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    location_type: Mapped[str] = mapped_column(String(10), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    cancel_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    home_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    home_zone: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    items: Mapped[List["AppointmentItem"]] = relationship(
        "AppointmentItem",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentItem.id",
    )

    __table_args__ = (
        Index(
            "ix_appointments_resource_window",
            "business_id",
            "groomer_id",
            "start_time",
            "end_time",
        ),
    )

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, groomer_id={self.groomer_id}, "
            f"start_time={self.start_time}, status='{self.status}')>"
        )


class AppointmentItem(Base):
    """Pet/service line of an appointment with its duration frozen at booking time"""

    __tablename__ = "appointment_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    appointment_id: Mapped[int] = mapped_column(
        ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    pet_id: Mapped[int] = mapped_column(ForeignKey("pets.id"), nullable=False)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id"), nullable=False)
    calculated_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    extras: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    appointment: Mapped["Appointment"] = relationship(
        "Appointment", back_populates="items"
    )


class ScheduleLock(Base):
    """One row per (business, groomer) calendar, locked FOR UPDATE while booking"""

    __tablename__ = "schedule_locks"

    business_id: Mapped[int] = mapped_column(
        ForeignKey("groomer_businesses.id", ondelete="CASCADE"), primary_key=True
    )
    groomer_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )
