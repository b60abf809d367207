from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Union
from datetime import datetime
from .models import UserRole
from .invoice import CustomServiceItem, SubcontractorItem


# --- Catalog ---

class TowingService(BaseModel):
    id: int
    name: str
    rate: float
    class Config:
        from_attributes = True

class ServiceRateUpdate(BaseModel):
    rate: Union[float, str]


# --- Jobs ---

class JobBase(BaseModel):
    customer_name: str = Field(min_length=1)
    invoice_number: str = Field(min_length=1)
    vehicle_type: str = Field(min_length=1)
    vehicle_weight: int = Field(ge=0)
    problem_description: str = Field(min_length=1)
    fuel_surcharge: float = Field(default=15.0, ge=0, le=100)

class JobCreate(JobBase):
    pass

class JobUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1)
    invoice_number: Optional[str] = Field(default=None, min_length=1)
    vehicle_type: Optional[str] = Field(default=None, min_length=1)
    vehicle_weight: Optional[int] = Field(default=None, ge=0)
    problem_description: Optional[str] = Field(default=None, min_length=1)
    fuel_surcharge: Optional[float] = Field(default=None, ge=0, le=100)

class Job(JobBase):
    id: int
    user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True

class InvoiceServiceRecord(BaseModel):
    service_id: int
    cost: float

class InvoiceServiceRecordOut(InvoiceServiceRecord):
    id: int
    job_id: int
    class Config:
        from_attributes = True

class InvoiceServicesCreate(BaseModel):
    services: List[InvoiceServiceRecord] = []

class JobCustomService(CustomServiceItem):
    id: int
    class Config:
        from_attributes = True

class JobSubcontractor(BaseModel):
    id: int
    name: str
    work_performed: Optional[str] = None
    price: float
    class Config:
        from_attributes = True

class JobDetail(Job):
    invoice_services: List[InvoiceServiceRecordOut] = []
    custom_services: List[JobCustomService] = []
    subcontractors: List[JobSubcontractor] = []

class InvoiceRequest(BaseModel):
    """Selection map keys are service ids; JSON object keys arrive as strings."""
    selected_services: Dict[str, bool] = {}
    custom_services: List[CustomServiceItem] = []
    subcontractors: List[SubcontractorItem] = []

class JobPhoto(BaseModel):
    id: int
    job_id: int
    photo_path: str
    created_at: datetime
    class Config:
        from_attributes = True


# --- Company settings ---

class CompanySettingsUpdate(BaseModel):
    company_name: Optional[str] = None
    company_subtitle: Optional[str] = None
    company_logo: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    default_fuel_surcharge: Optional[float] = Field(default=None, ge=0, le=100)
    invoice_footer: Optional[str] = None

    @field_validator("company_logo")
    @classmethod
    def logo_stays_in_uploads(cls, v):
        # Emoji, R2 URLs and /uploads/ paths; no parent-directory segments
        if v and v.startswith("/uploads/") and ".." in v.split("/"):
            raise ValueError("company_logo must point inside /uploads/")
        return v

class CompanySettings(BaseModel):
    id: int
    user_id: int
    company_name: str
    company_subtitle: Optional[str] = None
    company_logo: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    default_fuel_surcharge: float
    invoice_footer: Optional[str] = None
    updated_at: datetime
    class Config:
        from_attributes = True


# --- Users & companies ---

class User(BaseModel):
    id: int
    username: str
    role: UserRole
    company_id: Optional[int] = None
    created_at: datetime
    class Config:
        from_attributes = True

class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    role: UserRole = UserRole.USER
    company_id: Optional[int] = None

class UserRoleUpdate(BaseModel):
    role: UserRole

class UserCompanyUpdate(BaseModel):
    company_id: Optional[int] = None

class CompanyCreate(BaseModel):
    name: str = Field(min_length=1)

class Company(BaseModel):
    id: int
    name: str
    created_at: datetime
    class Config:
        from_attributes = True
