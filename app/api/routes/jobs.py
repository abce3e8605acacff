"""
Job posting endpoints for employers.

New jobs go live only when the posting quota allows it; otherwise they are
saved inactive (pending activation).
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.db.models.job import Job
from app.core.auth_dependency import get_db, require_employer
from app.schemas.job import JobCreate, JobResponse, PostingEligibilityResponse
from app.services import job_quota_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=JobResponse)
def create_job(
    job_data: JobCreate,
    employer: User = Depends(require_employer),
    db: Session = Depends(get_db)
):
    return job_quota_service.create_job(db, employer, job_data.model_dump())


@router.get("", response_model=List[JobResponse])
def list_jobs(
    employer: User = Depends(require_employer),
    db: Session = Depends(get_db)
):
    """Jobs of the current employer, newest first."""
    return (
        db.query(Job)
        .filter(Job.employer_id == employer.id)
        .order_by(Job.created_at.desc(), Job.id.desc())
        .all()
    )


@router.get("/posting-eligibility", response_model=PostingEligibilityResponse)
def posting_eligibility(
    employer: User = Depends(require_employer),
    db: Session = Depends(get_db)
):
    return job_quota_service.get_posting_eligibility(db, employer.id)


@router.patch("/{job_id}/toggle-active", response_model=JobResponse)
def toggle_active(
    job_id: int,
    employer: User = Depends(require_employer),
    db: Session = Depends(get_db)
):
    return job_quota_service.toggle_job_active(db, job_id, employer.id)
