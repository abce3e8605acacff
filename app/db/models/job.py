"""
Job model for employer job postings.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class Job(Base):
    """
    Job posting owned by an employer.

    is_active is decided at creation time by the posting quota gate and only
    changes afterwards through the toggle endpoint.
    """
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    job_code = Column(String(7), unique=True, nullable=False, index=True)  # "JS" + 5 digits
    employer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String, nullable=False)
    company = Column(String, nullable=True)
    location = Column(String, nullable=True)
    job_type = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    salary_from = Column(Integer, nullable=True)
    salary_to = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    employer = relationship("User", backref="jobs")

    __table_args__ = (
        Index("idx_jobs_employer_active", "employer_id", "is_active"),
    )

    def __repr__(self):
        return f"<Job(id={self.id}, job_code='{self.job_code}', active={self.is_active})>"
