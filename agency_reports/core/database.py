# agency_reports/core/database.py
"""Application database: request logs and report execution logs.

Tenant databases are not managed here; see agency_reports.tenancy.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from agency_reports.core.config import DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Get application database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_all_tables() -> None:
    """Create the application tables."""
    # Import models to ensure they're registered with Base
    from agency_reports.logging.models import Log  # noqa: F401
    from agency_reports.reporting.models import ReportExecutionLog  # noqa: F401

    Base.metadata.create_all(bind=engine)


def init_db() -> None:
    """Initialize the application database."""
    create_all_tables()
