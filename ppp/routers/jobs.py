"""
Job endpoints: CRUD, stored service costs, invoice calculation and export.

Visibility: a user sees their own jobs plus jobs of users in the same
company. Admins see every job.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, get_current_user_or_token_param
from ..database import get_db
from ..invoice import (
    Invoice,
    InvoiceNotReady,
    JobInfo,
    calculate_invoice,
    check_ready_to_invoice,
    invoice_service_records,
    summarize_invoice,
)
from ..pdf_generator import generate_invoice_pdf
from ..uploads import local_path
from .company import get_or_create_settings, settings_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _money(value: float) -> Decimal:
    return Decimal(str(round(value, 2)))


def visible_jobs(db: Session, user: models.User):
    """Query of jobs the user may see."""
    query = db.query(models.Job)
    if user.role == models.UserRole.ADMIN:
        return query
    if user.company_id:
        member_ids = select(models.User.id).where(models.User.company_id == user.company_id)
        return query.filter(models.Job.user_id.in_(member_ids))
    return query.filter(models.Job.user_id == user.id)


def get_visible_job(job_id: int, db: Session, user: models.User) -> models.Job:
    job = db.query(models.Job).filter(models.Job.id == job_id).first()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    if not visible_jobs(db, user).filter(models.Job.id == job_id).first():
        raise HTTPException(status_code=403, detail="Not your job")
    return job


def job_info_from_job(job: models.Job) -> JobInfo:
    return JobInfo(
        customer_name=job.customer_name,
        invoice_number=job.invoice_number,
        vehicle_type=job.vehicle_type,
        vehicle_weight=job.vehicle_weight,
        problem_description=job.problem_description,
        fuel_surcharge=float(job.fuel_surcharge),
    )


def _catalog(db: Session) -> List[models.TowingService]:
    return db.query(models.TowingService).order_by(models.TowingService.id).all()


def build_job_invoice(job: models.Job, db: Session) -> Invoice:
    """Recompute the invoice from the job's stored selection and the current catalog."""
    selected = {record.service_id: True for record in job.invoice_services}
    custom = [{"name": c.name, "price": float(c.price)} for c in job.custom_services]
    subs = [
        {"name": s.name, "work_performed": s.work_performed or "", "price": float(s.price)}
        for s in job.subcontractors
    ]
    return calculate_invoice(
        job_info_from_job(job),
        selected,
        _catalog(db),
        subcontractors=subs,
        custom_services=custom,
    )


# --- Jobs ---

@router.get("/", response_model=List[schemas.Job])
def list_jobs(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return visible_jobs(db, current_user).order_by(models.Job.id).all()


@router.get("/recent", response_model=List[schemas.Job])
def recent_jobs(
    limit: int = Query(10, ge=1, le=100),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        visible_jobs(db, current_user)
        .order_by(models.Job.created_at.desc(), models.Job.id.desc())
        .limit(limit)
        .all()
    )


@router.post("/", response_model=schemas.Job)
def create_job(
    job: schemas.JobCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    db_job = models.Job(**job.model_dump(), user_id=current_user.id)
    db.add(db_job)
    db.commit()
    db.refresh(db_job)
    logger.info("Job %s created (invoice #%s) by %s", db_job.id, db_job.invoice_number, current_user.username)
    return db_job


@router.get("/{job_id}", response_model=schemas.JobDetail)
def get_job(
    job_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_visible_job(job_id, db, current_user)


@router.patch("/{job_id}", response_model=schemas.Job)
def update_job(
    job_id: int,
    update: schemas.JobUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = get_visible_job(job_id, db, current_user)
    for field, value in update.model_dump(exclude_unset=True).items():
        if value is None:
            continue  # every job column is NOT NULL
        setattr(job, field, value)
    job.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(job)
    return job


@router.delete("/{job_id}")
def delete_job(
    job_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = get_visible_job(job_id, db, current_user)
    db.delete(job)
    db.commit()
    logger.info("Job %s deleted by %s", job_id, current_user.username)
    return {"success": True}


@router.post("/{job_id}/services")
def create_invoice_services(
    job_id: int,
    body: schemas.InvoiceServicesCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Store per-service cost records for a job."""
    job = get_visible_job(job_id, db, current_user)
    known = {s.id for s in _catalog(db)}
    unknown = sorted({r.service_id for r in body.services} - known)
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown service ids: {unknown}")

    for record in body.services:
        job.invoice_services.append(
            models.InvoiceService(service_id=record.service_id, cost=_money(record.cost))
        )
    db.commit()
    return {"success": True}


# --- Invoice ---

@router.post("/{job_id}/invoice", response_model=Invoice)
def calculate_job_invoice(
    job_id: int,
    request: schemas.InvoiceRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Calculate the invoice for a job and store its line items.

    Replaces the job's stored service costs, custom services and
    subcontractors with the ones in this request.
    """
    job = get_visible_job(job_id, db, current_user)
    catalog = _catalog(db)
    job_info = job_info_from_job(job)

    try:
        check_ready_to_invoice(job_info, request.selected_services, catalog)
    except InvoiceNotReady as e:
        raise HTTPException(status_code=400, detail=str(e))

    invoice = calculate_invoice(
        job_info,
        request.selected_services,
        catalog,
        subcontractors=request.subcontractors,
        custom_services=request.custom_services,
    )

    job.invoice_services.clear()
    job.custom_services.clear()
    job.subcontractors.clear()
    for record in invoice_service_records(invoice):
        job.invoice_services.append(
            models.InvoiceService(service_id=record["service_id"], cost=_money(record["cost"]))
        )
    for item in invoice.custom_services:
        job.custom_services.append(models.JobCustomService(name=item.name, price=_money(item.price)))
    for sub in invoice.subcontractors:
        job.subcontractors.append(models.JobSubcontractor(
            name=sub.name, work_performed=sub.work_performed, price=_money(sub.price),
        ))
    db.commit()

    logger.info("Invoice #%s calculated for job %s: total %.2f", invoice.invoice_number, job.id, invoice.total)
    return invoice


@router.get("/{job_id}/invoice", response_model=Invoice)
def get_job_invoice(
    job_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = get_visible_job(job_id, db, current_user)
    return build_job_invoice(job, db)


@router.get("/{job_id}/invoice/text", response_class=PlainTextResponse)
def get_job_invoice_text(
    job_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Share / clipboard summary."""
    job = get_visible_job(job_id, db, current_user)
    return summarize_invoice(build_job_invoice(job, db))


@router.get("/{job_id}/pdf")
def download_invoice_pdf(
    job_id: int,
    current_user: models.User = Depends(get_current_user_or_token_param),
    db: Session = Depends(get_db),
):
    """
    Generate and download the invoice PDF.

    Auth: Bearer header OR ?token= query param.
    Returns: application/pdf
    """
    job = get_visible_job(job_id, db, current_user)
    invoice = build_job_invoice(job, db)
    company = get_or_create_settings(db, current_user)
    photos = [local_path(p.photo_path) for p in job.photos]

    pdf_bytes = bytes(generate_invoice_pdf(
        invoice,
        settings_to_dict(company),
        photo_paths=[p for p in photos if p is not None],
        logo_path=local_path(company.company_logo),
    ))

    filename = f"Invoice-{job.invoice_number or job_id}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )
