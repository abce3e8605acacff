"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from app.db.models.user import User
from app.db.models.plan import Plan
from app.db.models.order import Order
from app.db.models.subscription import Subscription
from app.db.models.job import Job

# Explicitly export all models for clarity
__all__ = [
    "User",
    "Plan",
    "Order",
    "Subscription",
    "Job",
]
