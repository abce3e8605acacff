"""
Job posting quota gate.

Decides whether a new or re-activated job may go live for an employer.
The employer's remaining_active_postings counter is only ever changed with a
conditional UPDATE (decrement if > 0) that runs in the same transaction as the
job write, so two concurrent postings can never spend the same unit.
Create and toggle also hold the employer row lock, which keeps the
"one active job without a subscription" check and its write together.
"""
import logging
import secrets
from datetime import datetime
from typing import Dict, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.db.models.job import Job
from app.core.exceptions import JobNotFound, MarketplaceError, SingleActiveJobLimit, SubjectNotFound
from app.services.subscription_service import get_subscription, is_subscription_active

logger = logging.getLogger(__name__)

JOB_CODE_MAX_ATTEMPTS = 20


def generate_job_code() -> str:
    return f"JS{secrets.randbelow(90000) + 10000}"


def get_employer(db: Session, employer_id: int) -> User:
    employer = db.query(User).filter(User.id == employer_id).first()
    if not employer:
        raise SubjectNotFound(f"Employer not found: {employer_id}")
    return employer


def lock_employer(db: Session, employer_id: int) -> User:
    """
    SELECT ... FOR UPDATE on the employer row. Held until the caller commits or
    rolls back, so quota decisions for one employer run one at a time.
    """
    employer = (
        db.query(User)
        .filter(User.id == employer_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not employer:
        raise SubjectNotFound(f"Employer not found: {employer_id}")
    return employer


def has_active_subscription(db: Session, user_id: int, now: Optional[datetime] = None) -> bool:
    return is_subscription_active(get_subscription(db, user_id), now)


def other_active_job_exists(db: Session, employer_id: int, exclude_job_id: Optional[int] = None) -> bool:
    query = db.query(Job.id).filter(Job.employer_id == employer_id, Job.is_active.is_(True))
    if exclude_job_id is not None:
        query = query.filter(Job.id != exclude_job_id)
    return query.first() is not None


def consume_posting_unit(db: Session, employer_id: int) -> bool:
    """
    Atomically take one posting unit. Does not commit.

    Returns:
        True if a unit was taken, False if the counter was already 0
    """
    updated = (
        db.query(User)
        .filter(User.id == employer_id, User.remaining_active_postings > 0)
        .update(
            {User.remaining_active_postings: User.remaining_active_postings - 1},
            synchronize_session=False,
        )
    )
    return updated == 1


def evaluate_new_job_activation(db: Session, employer_id: int, now: Optional[datetime] = None) -> bool:
    """
    Decide whether a job being created right now starts active.

    Without an active subscription only one job may be live at a time.
    Otherwise the job is active iff a posting unit could be taken. A taken
    unit is part of the caller's transaction and is released by its rollback.
    """
    if not has_active_subscription(db, employer_id, now) and other_active_job_exists(db, employer_id):
        return False
    return consume_posting_unit(db, employer_id)


def create_job(db: Session, employer: User, job_data: Dict, now: Optional[datetime] = None) -> Job:
    """
    Create a job posting. Jobs that fail the quota gate are saved inactive
    (pending activation) rather than rejected.
    """
    for attempt in range(1, JOB_CODE_MAX_ATTEMPTS + 1):
        lock_employer(db, employer.id)
        is_active = evaluate_new_job_activation(db, employer.id, now)
        job = Job(
            job_code=generate_job_code(),
            employer_id=employer.id,
            is_active=is_active,
            **job_data,
        )
        db.add(job)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if "job_code" not in str(getattr(e, "orig", e)):
                raise
            logger.warning(f"Job code collision: attempt={attempt}, employer_id={employer.id}")
            continue

        db.refresh(job)
        logger.info(
            f"Job created: job_id={job.id}, job_code={job.job_code}, employer_id={employer.id}, active={job.is_active}"
        )
        return job

    raise MarketplaceError("Failed to generate unique job code")


def toggle_job_active(db: Session, job_id: int, employer_id: int, now: Optional[datetime] = None) -> Job:
    """
    Flip a job between active and inactive.

    Deactivating always succeeds and does not give the unit back. Activating
    takes a posting unit when the employer has an active subscription;
    otherwise, or when no unit is left, it is allowed only if no other job of
    the employer is active.

    Raises:
        JobNotFound: Job missing or owned by another employer
        SingleActiveJobLimit: Another job is already active and no unit is available
    """
    job = db.query(Job).filter(Job.id == job_id, Job.employer_id == employer_id).first()
    if not job:
        raise JobNotFound(f"Job not found: {job_id}")

    lock_employer(db, employer_id)
    db.refresh(job)

    if job.is_active:
        job.is_active = False
        db.commit()
        db.refresh(job)
        logger.info(f"Job deactivated: job_id={job.id}, employer_id={employer_id}")
        return job

    if has_active_subscription(db, employer_id, now) and consume_posting_unit(db, employer_id):
        source = "quota"
    elif not other_active_job_exists(db, employer_id, exclude_job_id=job.id):
        source = "single_slot"
    else:
        db.rollback()
        logger.warning(f"Job activation blocked: job_id={job_id}, employer_id={employer_id}")
        raise SingleActiveJobLimit()

    job.is_active = True
    db.commit()
    db.refresh(job)
    logger.info(f"Job activated: job_id={job.id}, employer_id={employer_id}, source={source}")
    return job


def get_posting_eligibility(db: Session, employer_id: int, now: Optional[datetime] = None) -> Dict:
    """Read-only preview of what the gate would decide for a new job."""
    employer = get_employer(db, employer_id)
    subscribed = has_active_subscription(db, employer_id, now)
    remaining = employer.remaining_active_postings or 0

    if not subscribed and other_active_job_exists(db, employer_id):
        can_post = False
    else:
        can_post = remaining > 0

    return {
        "can_post": can_post,
        "has_active_subscription": subscribed,
        "remaining_active_postings": remaining,
        "message": "" if can_post else (
            "You have reached your job posting limit. Upgrade your plan to post more active jobs."
        ),
    }
