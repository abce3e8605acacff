"""
Pydantic schemas for job posting endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, model_validator


class JobCreate(BaseModel):
    """Schema for posting a new job."""
    title: str = Field(..., description="Job title", min_length=1, max_length=255)
    company: Optional[str] = Field(None, description="Company name", max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    job_type: Optional[str] = Field(None, description="e.g. full-time, contract", max_length=50)
    description: Optional[str] = None
    salary_from: Optional[int] = Field(None, ge=0)
    salary_to: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_salary_range(self):
        if self.salary_from is not None and self.salary_to is not None and self.salary_to < self.salary_from:
            raise ValueError("salary_to must be greater than or equal to salary_from")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Backend Engineer",
                "company": "Acme Corp",
                "location": "Bengaluru",
                "job_type": "full-time",
                "description": "Build and run our payments platform.",
                "salary_from": 1200000,
                "salary_to": 1800000,
            }
        }


class JobResponse(BaseModel):
    """Schema for job response. Inactive jobs are pending activation."""
    id: int
    job_code: str = Field(..., description="Public job code, JS + 5 digits")
    employer_id: int
    title: str
    company: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[str] = None
    description: Optional[str] = None
    salary_from: Optional[int] = None
    salary_to: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PostingEligibilityResponse(BaseModel):
    can_post: bool
    has_active_subscription: bool
    remaining_active_postings: int
    message: str = ""
