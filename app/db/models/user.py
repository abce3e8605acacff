from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from sqlalchemy.sql import func
from app.db.base import Base

# Account roles
ROLE_EMPLOYEE = "employee"
ROLE_EMPLOYER = "employer"
ROLE_EMPLOYER_ADMIN = "employer_admin"
ROLE_ADMIN = "admin"
ROLES = (ROLE_EMPLOYEE, ROLE_EMPLOYER, ROLE_EMPLOYER_ADMIN, ROLE_ADMIN)
EMPLOYER_ROLES = (ROLE_EMPLOYER, ROLE_EMPLOYER_ADMIN)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True)
    password_hash = Column(String)
    role = Column(String, nullable=False, default=ROLE_EMPLOYEE)  # employee | employer | employer_admin | admin
    phone = Column(String, nullable=True)
    company_name = Column(String, nullable=True)

    # Employers only: simultaneously-active job posting units left
    remaining_active_postings = Column(Integer, nullable=False, default=1, server_default="1")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("remaining_active_postings >= 0", name="remaining_active_postings_non_negative"),
    )

    @property
    def is_employer(self) -> bool:
        return self.role in EMPLOYER_ROLES
