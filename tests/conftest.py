"""
Test configuration and shared fixtures for the agency reports test suite.
Provides tenant database setup, the application client and sample configs.
"""

import os
import tempfile

# Point the application database at a throwaway file before the app is imported
_APP_DB_DIR = tempfile.mkdtemp(prefix="agency_reports_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_APP_DB_DIR, 'app.db')}"

import pytest
from typing import Any, Dict, Generator
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from fastapi.testclient import TestClient

from agency_reports.app import create_app
from agency_reports.core.database import SessionLocal, init_db
from agency_reports.logging.models import Log
from agency_reports.reporting.models import ReportExecutionLog
from agency_reports.tenancy.pool_manager import TenantPoolManager


TENANT_ID = "agency_one"
TENANT_HEADERS = {"X-Agency-Database": TENANT_ID}


# ===== TENANT DATABASE SETUP =====


def seed_tenant_database(engine: Engine) -> None:
    """Create a small projects/clients schema with sample rows."""
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE clients (id INTEGER PRIMARY KEY, name TEXT NOT NULL)"))
        conn.execute(
            text(
                "CREATE TABLE projects ("
                "id INTEGER PRIMARY KEY, name TEXT NOT NULL, status TEXT, "
                "budget REAL, client_id INTEGER REFERENCES clients(id))"
            )
        )
        conn.execute(
            text("INSERT INTO clients (id, name) VALUES (1, 'Acme'), (2, 'Globex'), (3, 'Initech')")
        )
        conn.execute(
            text(
                "INSERT INTO projects (id, name, status, budget, client_id) VALUES "
                "(1, 'Website', 'open', 1000.0, 1), "
                "(2, 'Mobile App', 'open', 2500.0, 1), "
                "(3, 'Audit', 'closed', 500.0, 2), "
                "(4, 'Migration', 'on_hold', 4000.0, NULL), "
                "(5, 'Branding', NULL, 750.0, 3)"
            )
        )


@pytest.fixture
def tenant_engine_factory(tmp_path):
    """Engine factory creating one seeded SQLite file per tenant database."""
    engines: Dict[str, Engine] = {}

    def factory(database: str) -> Engine:
        engine = create_engine(
            f"sqlite:///{tmp_path / (database + '.db')}",
            pool_size=2,
            max_overflow=0,
            pool_timeout=0.2,
        )
        if database not in engines:
            seed_tenant_database(engine)
        engines[database] = engine
        return engine

    factory.engines = engines
    return factory


@pytest.fixture
def pool_manager(tenant_engine_factory) -> Generator[TenantPoolManager, None, None]:
    manager = TenantPoolManager(max_pools=3, engine_factory=tenant_engine_factory)
    yield manager
    manager.dispose_all()


# ===== APPLICATION =====


@pytest.fixture(autouse=True)
def clean_app_database():
    """Remove request and execution logs written by each test."""
    init_db()
    yield
    with SessionLocal() as session:
        session.query(ReportExecutionLog).delete()
        session.query(Log).delete()
        session.commit()


@pytest.fixture
def client(pool_manager) -> Generator[TestClient, None, None]:
    """Create FastAPI test client backed by the SQLite tenant databases"""
    app = create_app(pool_manager=pool_manager)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def tenant_headers() -> Dict[str, str]:
    return dict(TENANT_HEADERS)


# ===== SAMPLE CONFIG FIXTURES =====


@pytest.fixture
def projects_config() -> Dict[str, Any]:
    """Open projects with their client names, most expensive first."""
    return {
        "tables": ["projects", "clients"],
        "columns": [
            {"table": "projects", "column": "name", "alias": "project"},
            {"table": "clients", "column": "name", "alias": "client"},
            {"table": "projects", "column": "budget"},
        ],
        "joins": [
            {"table": "clients", "type": "left", "condition": "projects.client_id = clients.id"}
        ],
        "filters": [{"table": "projects", "column": "status", "operator": "=", "value": "open"}],
        "orderBy": [{"column": "budget", "direction": "desc"}],
        "limit": 10,
    }
