"""
Company branding settings: one row per user, shown on every invoice.

GET  /api/company       current user's settings (seeded with defaults on first read)
PUT  /api/company       partial update
POST /api/company/logo  upload a logo image
"""

from datetime import datetime

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..config import settings
from ..database import get_db
from ..uploads import delete_local, store_image

router = APIRouter(prefix="/company", tags=["company"])


def get_or_create_settings(db: Session, user: models.User) -> models.CompanySettings:
    """Return the user's settings row, seeding defaults if there is none."""
    row = db.query(models.CompanySettings).filter(
        models.CompanySettings.user_id == user.id
    ).first()
    if row:
        return row

    row = models.CompanySettings(
        user_id=user.id,
        company_name=settings.DEFAULT_COMPANY_NAME,
        company_subtitle=settings.DEFAULT_COMPANY_SUBTITLE,
        company_logo=settings.DEFAULT_COMPANY_LOGO,
        default_fuel_surcharge=settings.DEFAULT_FUEL_SURCHARGE,
        invoice_footer=settings.DEFAULT_INVOICE_FOOTER,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def settings_to_dict(row: models.CompanySettings) -> dict:
    """Plain dict for the PDF generator."""
    return {
        "company_name": row.company_name,
        "company_subtitle": row.company_subtitle,
        "company_logo": row.company_logo,
        "address": row.address,
        "phone": row.phone,
        "email": row.email,
        "invoice_footer": row.invoice_footer,
    }


@router.get("/", response_model=schemas.CompanySettings)
def get_company_settings(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_or_create_settings(db, current_user)


@router.put("/", response_model=schemas.CompanySettings)
def update_company_settings(
    update: schemas.CompanySettingsUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = get_or_create_settings(db, current_user)
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(row, field, value)
    row.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(row)
    return row


@router.post("/logo", response_model=schemas.CompanySettings)
async def upload_logo(
    logo: UploadFile = File(...),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = get_or_create_settings(db, current_user)
    new_logo = await store_image(logo, "logos", f"user{current_user.id}")

    delete_local(row.company_logo)
    row.company_logo = new_logo
    row.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(row)
    return row
