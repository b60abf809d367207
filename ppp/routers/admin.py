"""
Admin endpoints: users, roles and companies. Admin role required.

Users in the same company see each other's jobs.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin
from ..database import get_db
from .auth import create_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_user(db: Session, user_id: int) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _check_company(db: Session, company_id) -> None:
    if company_id is None:
        return
    if not db.query(models.Company).filter(models.Company.id == company_id).first():
        raise HTTPException(status_code=404, detail="Company not found")


# --- Users ---

@router.get("/users", response_model=List[schemas.User])
def list_users(admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(models.User).order_by(models.User.id).all()


@router.post("/users", response_model=schemas.User)
def admin_create_user(
    request: schemas.UserCreate,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    _check_company(db, request.company_id)
    return create_user(db, request.username, request.password, request.role, request.company_id)


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user = _get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("User %s deleted by %s", user_id, admin.username)
    return {"success": True}


@router.patch("/users/{user_id}/role", response_model=schemas.User)
def update_user_role(
    user_id: int,
    update: schemas.UserRoleUpdate,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = _get_user(db, user_id)
    user.role = update.role
    db.commit()
    db.refresh(user)
    return user


@router.patch("/users/{user_id}/company", response_model=schemas.User)
def update_user_company(
    user_id: int,
    update: schemas.UserCompanyUpdate,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = _get_user(db, user_id)
    _check_company(db, update.company_id)
    user.company_id = update.company_id
    db.commit()
    db.refresh(user)
    return user


# --- Companies ---

@router.get("/companies", response_model=List[schemas.Company])
def list_companies(admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(models.Company).order_by(models.Company.name).all()


@router.post("/companies", response_model=schemas.Company)
def create_company(
    request: schemas.CompanyCreate,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if db.query(models.Company).filter(models.Company.name == request.name).first():
        raise HTTPException(status_code=409, detail="Company already exists")
    company = models.Company(name=request.name)
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@router.delete("/companies/{company_id}")
def delete_company(
    company_id: int,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    company = db.query(models.Company).filter(models.Company.id == company_id).first()
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    # Members keep their accounts and jobs, they just leave the company
    for user in company.users:
        user.company_id = None
    db.delete(company)
    db.commit()
    return {"success": True}
