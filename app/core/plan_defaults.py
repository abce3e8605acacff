"""
Default plan catalogue written by scripts/seed_plans.py.

Amounts are in INR; gst is 18% of price.
"""
from typing import Dict, List

RETIRED_PLAN_IDS = ("gold", "platinum", "special")

DEFAULT_PLANS: List[Dict] = [
    {
        "plan_id": "silver",
        "name": "Silver",
        "price": 0,
        "gst": 0,
        "total_amount": 0,
        "validity_months": 0,
        "billing_type": "one-time",
        "can_apply": True,
        "recruiter_priority": "none",
        "immediate_interview_call": False,
        "profile_boosted": False,
        "dedicated_manager": False,
        "resume_review_count": 0,
        "job_posting_limit": 0,
    },
    {
        "plan_id": "starter",
        "name": "Starter",
        "price": 15000,
        "gst": 2700,
        "total_amount": 17700,
        "validity_months": 6,
        "billing_type": "one-time",
        "can_apply": True,
        "recruiter_priority": "medium",
        "immediate_interview_call": False,
        "profile_boosted": True,
        "dedicated_manager": False,
        "resume_review_count": 1,
        "job_posting_limit": 0,
    },
    {
        "plan_id": "premium",
        "name": "Premium",
        "price": 30000,
        "gst": 5400,
        "total_amount": 35400,
        "validity_months": 12,
        "billing_type": "one-time",
        "can_apply": True,
        "recruiter_priority": "highest",
        "immediate_interview_call": True,
        "profile_boosted": True,
        "dedicated_manager": True,
        "resume_review_count": 3,
        "job_posting_limit": 0,
    },
    {
        "plan_id": "recruiter",
        "name": "Recruiter",
        "price": 5000,
        "gst": 900,
        "total_amount": 5900,
        "validity_months": 1,
        "billing_type": "monthly",
        "can_apply": False,
        "recruiter_priority": "none",
        "immediate_interview_call": False,
        "profile_boosted": False,
        "dedicated_manager": False,
        "resume_review_count": 0,
        "job_posting_limit": 5,
    },
]
