from decimal import Decimal
import logging
import math

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from .. import models, schemas
from ..auth import get_current_user, require_admin
from ..database import get_db
from ..invoice import coerce_rate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["services"])

# Numeric(5, 2) column
MAX_RATE = 1000


def seed_towing_services(db: Session) -> int:
    """Seed the default catalog. Only runs against an empty table."""
    if db.query(models.TowingService).count() > 0:
        return 0
    for name, rate in models.DEFAULT_SERVICES:
        db.add(models.TowingService(name=name, rate=Decimal(rate)))
    db.commit()
    logger.info("Seeded %d towing services", len(models.DEFAULT_SERVICES))
    return len(models.DEFAULT_SERVICES)


@router.get("/", response_model=List[schemas.TowingService])
def list_services(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return db.query(models.TowingService).order_by(models.TowingService.id).all()


@router.patch("/{service_id}", response_model=schemas.TowingService)
def update_service_rate(
    service_id: int,
    update: schemas.ServiceRateUpdate,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    service = db.query(models.TowingService).filter(models.TowingService.id == service_id).first()
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    # Range applies to the value as stored in the Numeric(5, 2) column
    rate = round(coerce_rate(update.rate), 2)
    if math.isnan(rate) or rate < 0 or rate >= MAX_RATE:
        raise HTTPException(status_code=400, detail=f"Rate must be a number between 0 and {MAX_RATE}")

    service.rate = Decimal(str(rate))
    db.commit()
    db.refresh(service)
    logger.info("Service %s rate set to %s by %s", service.id, service.rate, admin.username)
    return service
