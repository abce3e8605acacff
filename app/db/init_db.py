from app.db.session import engine
from app.db.base import Base
import app.db.models  # noqa: F401  (registers every table on Base.metadata)


def init_db():
    """Create all tables directly (local development without Alembic)."""
    Base.metadata.create_all(bind=engine)
