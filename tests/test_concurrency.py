"""
Concurrent activations and job postings.

Runs against a file-backed SQLite database with one session per thread.
SQLite has no row locks (FOR UPDATE is ignored), so every transaction starts
with BEGIN IMMEDIATE and holds the database write lock until it ends, which
is what the row locks give on Postgres.
"""
import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.db.models.user import User
from app.db.models.plan import Plan
from app.db.models.job import Job
from app.db.models.order import ORDER_PAID
from app.db.models.subscription import Subscription
from app.core.exceptions import SingleActiveJobLimit
from app.services.job_quota_service import create_job, get_employer, toggle_job_active
from app.services.order_ledger import create_order, get_order
from app.services.subscription_service import activate_subscription, get_subscription
from app.utils.dates import add_months


NOW = datetime(2024, 1, 31, 10, 0, 0)
WORKERS = 8


@pytest.fixture(scope="function")
def session_factory(tmp_path):
    """Fresh file-backed database; each session is its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def run_concurrently(session_factory, func, args_list):
    """Call func(db, *args) for each args in its own thread and session."""
    def worker(args):
        db = session_factory()
        try:
            return func(db, *args)
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=len(args_list)) as pool:
        futures = [pool.submit(worker, args) for args in args_list]
        return [f.result() for f in futures]


def seed(session_factory, users):
    db = session_factory()
    try:
        db.add(Plan(plan_id="starter", name="Starter", price=15000, gst=2700, total_amount=17700, validity_months=6))
        db.add_all(users)
        db.commit()
        return [user.id for user in users]
    finally:
        db.close()


def test_concurrent_activations_issue_distinct_cards(session_factory):
    user_ids = seed(session_factory, [
        User(full_name=f"User {i}", email=f"user{i}@example.com", password_hash="x", role="employee")
        for i in range(WORKERS)
    ])
    db = session_factory()
    order_ids = [create_order(db, user_id, "starter", 17700, "stripe").order_id for user_id in user_ids]
    db.close()

    def activate(session, user_id, order_id):
        return activate_subscription(session, user_id, order_id, now=NOW).subscription.card_number

    cards = run_concurrently(session_factory, activate, list(zip(user_ids, order_ids)))

    assert len(set(cards)) == WORKERS
    db = session_factory()
    assert db.query(Subscription).count() == WORKERS
    assert all(get_order(db, order_id).status == ORDER_PAID for order_id in order_ids)
    db.close()


def test_concurrent_activations_for_one_account_extend_twice(session_factory):
    (user_id,) = seed(session_factory, [
        User(full_name="Asha Rao", email="asha@example.com", password_hash="x", role="employee"),
    ])
    db = session_factory()
    order_ids = [create_order(db, user_id, "starter", 17700, "stripe").order_id for _ in range(2)]
    db.close()

    def activate(session, order_id):
        return activate_subscription(session, user_id, order_id, now=NOW).already_activated

    results = run_concurrently(session_factory, activate, [(order_id,) for order_id in order_ids])

    assert results == [False, False]
    db = session_factory()
    subscription = get_subscription(db, user_id)
    assert subscription.end_date == add_months(add_months(NOW, 6), 6)
    assert db.query(Subscription).count() == 1
    db.close()


def test_same_order_activated_concurrently_once(session_factory):
    (user_id,) = seed(session_factory, [
        User(full_name="Asha Rao", email="asha@example.com", password_hash="x", role="employee"),
    ])
    db = session_factory()
    order_id = create_order(db, user_id, "starter", 17700, "payu").order_id
    db.close()

    def activate(session):
        return activate_subscription(session, user_id, order_id, now=NOW).already_activated

    results = run_concurrently(session_factory, activate, [() for _ in range(4)])

    assert sorted(results) == [False, True, True, True]
    db = session_factory()
    assert get_subscription(db, user_id).end_date == add_months(NOW, 6)
    db.close()


def subscribed_employer(session_factory, units):
    (employer_id,) = seed(session_factory, [
        User(full_name="Hiring Manager", email="hr@example.com", password_hash="x", role="employer",
             remaining_active_postings=units),
    ])
    db = session_factory()
    db.add(Subscription(
        user_id=employer_id, plan_type="recruiter", start_date=NOW, end_date=add_months(NOW, 120),
        card_number="459999999999", expiry_month="01", expiry_year="2034", issued_at=NOW,
    ))
    db.commit()
    db.close()
    return employer_id


def post(session, employer_id, title):
    return create_job(session, get_employer(session, employer_id), {"title": title}).is_active


def test_concurrent_postings_spend_quota_exactly(session_factory):
    employer_id = subscribed_employer(session_factory, units=2)

    results = run_concurrently(session_factory, post, [(employer_id, "Job A"), (employer_id, "Job B")])

    assert results == [True, True]
    db = session_factory()
    assert db.get(User, employer_id).remaining_active_postings == 0
    db.close()


def test_concurrent_postings_never_overdraw(session_factory):
    employer_id = subscribed_employer(session_factory, units=2)

    results = run_concurrently(
        session_factory, post, [(employer_id, f"Job {i}") for i in range(WORKERS)]
    )

    assert results.count(True) == 2
    db = session_factory()
    assert db.get(User, employer_id).remaining_active_postings == 0
    assert db.query(Job).filter(Job.is_active.is_(True)).count() == 2
    db.close()


def test_concurrent_toggles_without_subscription_keep_one_active(session_factory):
    (employer_id,) = seed(session_factory, [
        User(full_name="Hiring Manager", email="hr@example.com", password_hash="x", role="employer",
             remaining_active_postings=0),
    ])
    db = session_factory()
    job_ids = []
    for i in range(WORKERS):
        job = Job(job_code=f"JS{10000 + i}", employer_id=employer_id, title=f"Job {i}", is_active=False)
        db.add(job)
        db.commit()
        job_ids.append(job.id)
    db.close()

    def toggle(session, job_id):
        try:
            return toggle_job_active(session, job_id, employer_id).is_active
        except SingleActiveJobLimit:
            return False

    results = run_concurrently(session_factory, toggle, [(job_id,) for job_id in job_ids])

    assert results.count(True) == 1
    db = session_factory()
    assert db.query(Job).filter(Job.is_active.is_(True)).count() == 1
    db.close()
