"""
Job photo endpoints.

POST   /api/jobs/{job_id}/photos             upload one or more images
GET    /api/jobs/{job_id}/photos             list a job's photos
DELETE /api/jobs/{job_id}/photos/{photo_id}  remove a photo
"""

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..uploads import delete_local, store_image
from .jobs import get_visible_job

router = APIRouter(prefix="/jobs", tags=["photos"])


@router.post("/{job_id}/photos", response_model=List[schemas.JobPhoto])
async def upload_job_photos(
    job_id: int,
    photos: List[UploadFile] = File(...),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = get_visible_job(job_id, db, current_user)

    # Validate and store every file before touching the DB
    paths = [await store_image(photo, "photos", f"job{job.id}") for photo in photos]

    created = []
    for path in paths:
        row = models.JobPhoto(job_id=job.id, photo_path=path)
        db.add(row)
        created.append(row)
    db.commit()
    for row in created:
        db.refresh(row)
    return created


@router.get("/{job_id}/photos", response_model=List[schemas.JobPhoto])
def list_job_photos(
    job_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = get_visible_job(job_id, db, current_user)
    return db.query(models.JobPhoto).filter(
        models.JobPhoto.job_id == job.id
    ).order_by(models.JobPhoto.id).all()


@router.delete("/{job_id}/photos/{photo_id}")
def delete_job_photo(
    job_id: int,
    photo_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = get_visible_job(job_id, db, current_user)
    photo = db.query(models.JobPhoto).filter(
        models.JobPhoto.id == photo_id,
        models.JobPhoto.job_id == job.id,
    ).first()
    if not photo:
        raise HTTPException(status_code=404, detail="Photo not found")

    delete_local(photo.photo_path)
    db.delete(photo)
    db.commit()
    return {"success": True}
