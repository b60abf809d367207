from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


# --- Default service catalog. Seeded once, only rates are editable afterwards ---
# Rates are cents per pound of vehicle weight.

DEFAULT_SERVICES = [
    ("Normal Recovery (On or Near Highway)", "4.0"),
    ("Contained Recovery/Winching", "4.0"),
    ("Salvage/Debris Recovery", "5.5"),
    ("Handle Complete Recovery", "6.0"),
    ("Total Loss Recovery", "5.0"),
    ("Rollover", "4.0"),
    ("Inclement Weather", "2.5"),
    ("Nights/Weekends/Holidays", "2.5"),
    ("Travel Within 50 Miles", "3.5"),
    ("Travel Beyond 50 Miles", "6.5"),
    ("Wheels Higher than Roof", "2.0"),
    ("Embankment or Inclines", "4.5"),
    ("Back Doors Open", "2.0"),
    ("Tractor from Under Trailer", "2.0"),
    ("Major Suspension Damage", "6.0"),
    ("10 MPH Collision Factor", "2.0"),
    ("30 MPH Collision Factor", "3.0"),
    ("50 MPH Collision Factor", "4.0"),
    ("70+ MPH Collision Factor", "5.0"),
]


# --- Tenancy ---

class Company(Base):
    """Users in the same company see each other's jobs."""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    users = relationship("User", back_populates="company")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    company = relationship("Company", back_populates="users")
    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")
    jobs = relationship("Job", back_populates="user", cascade="all, delete-orphan")
    company_settings = relationship(
        "CompanySettings", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class AuthToken(Base):
    """JWT refresh token storage. Access tokens are stateless."""
    __tablename__ = "auth_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String, nullable=False)
    token_type = Column(String, default="refresh")
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="auth_tokens")


# --- Catalog ---

class TowingService(Base):
    """Per-pound priced recovery service."""
    __tablename__ = "towing_services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    rate = Column(Numeric(5, 2), nullable=False)  # cents per lb


# --- Jobs ---

class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    customer_name = Column(String, nullable=False)
    invoice_number = Column(String, nullable=False)
    vehicle_type = Column(String, nullable=False)
    vehicle_weight = Column(Integer, nullable=False)  # lbs
    problem_description = Column(Text, nullable=False)
    fuel_surcharge = Column(Numeric(5, 2), nullable=False, default=15)  # percent
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="jobs")
    invoice_services = relationship("InvoiceService", back_populates="job", cascade="all, delete-orphan")
    custom_services = relationship("JobCustomService", back_populates="job", cascade="all, delete-orphan")
    subcontractors = relationship("JobSubcontractor", back_populates="job", cascade="all, delete-orphan")
    photos = relationship("JobPhoto", back_populates="job", cascade="all, delete-orphan")


class InvoiceService(Base):
    """Cost of one selected catalog service, as computed for a job."""
    __tablename__ = "invoice_services"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Integer, ForeignKey("towing_services.id"), nullable=False)
    cost = Column(Numeric(10, 2), nullable=False)

    job = relationship("Job", back_populates="invoice_services")
    service = relationship("TowingService")


class JobCustomService(Base):
    """Flat-fee line item not tied to vehicle weight."""
    __tablename__ = "job_custom_services"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    job = relationship("Job", back_populates="custom_services")


class JobSubcontractor(Base):
    """Third-party work, excluded from the fuel surcharge base."""
    __tablename__ = "job_subcontractors"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    work_performed = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)

    job = relationship("Job", back_populates="subcontractors")


class JobPhoto(Base):
    __tablename__ = "job_photos"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    photo_path = Column(String, nullable=False)  # R2 URL or /uploads/... path
    created_at = Column(DateTime, default=datetime.utcnow)

    job = relationship("Job", back_populates="photos")


# --- Branding ---

class CompanySettings(Base):
    """Per-user invoice branding."""
    __tablename__ = "company_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    company_name = Column(String, nullable=False)
    company_subtitle = Column(String, nullable=True)
    company_logo = Column(String, nullable=True)  # emoji or /uploads/... path
    address = Column(Text, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    default_fuel_surcharge = Column(Numeric(5, 2), default=15)
    invoice_footer = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="company_settings")
