"""
Pytest fixtures for the HRIS payroll test suite.

Provides:
- Structured logging configuration and log capture
- A fresh database (engine + tables) per test
- Deterministic clock and actor fixtures
- Statutory rate tables and employee factories

Environment Variables:
- DATABASE_URL: SQLAlchemy URL of the test database.  Defaults to an
  in-memory SQLite database; set a postgresql:// URL to run against
  PostgreSQL.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from hris_config import get_active_rates
from hris_config.loader import with_checksum
from hris_config.schema import (
    InsuranceSchemeDef,
    StatutoryRates,
    TaxBracketDef,
    TaxReliefDef,
)
from hris_kernel.db.engine import (
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from hris_kernel.domain.clock import DeterministicClock
from hris_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from hris_modules._orm_registry import create_all_tables
from hris_modules.payroll.immutability import unregister_immutability_listeners
from hris_modules.payroll.models import Employee, EmploymentStatus
from hris_modules.payroll.orm import EmployeeModel

# Test actor ID for all test operations
TEST_ACTOR_ID = UUID("00000000-0000-4000-a000-0000000000aa")
TEST_COMPANY_ID = UUID("00000000-0000-4000-a000-0000000000c0")

DEFAULT_DATABASE_URL = "sqlite://"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture hris_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, payroll_service):
            payroll_service.process_period(...)
            logs = captured_logs()
            assert any(r["message"] == "payroll_period_processed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("hris_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh engine with all payroll tables for one test."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    drop_tables()
    create_all_tables()
    yield eng
    unregister_immutability_listeners()
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Session bound to the per-test database.  Commits are real."""
    sess = get_session()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()


# =============================================================================
# Actor / clock fixtures
# =============================================================================


@pytest.fixture
def test_actor_id() -> UUID:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


@pytest.fixture
def company_id() -> UUID:
    return TEST_COMPANY_ID


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2025, 1, 31, 9, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Rate table fixtures
# =============================================================================


def make_rates(
    *,
    schemes: tuple[InsuranceSchemeDef, ...] | None = None,
    brackets: tuple[TaxBracketDef, ...] | None = None,
    threshold: Decimal = Decimal("4500000"),
    reliefs: tuple[TaxReliefDef, ...] = (),
    version: str = "TEST-1",
    currency: str = "IDR",
    effective_from: date = date(2025, 1, 1),
    effective_to: date | None = None,
) -> StatutoryRates:
    """Build a checksummed rate table.

    Defaults reproduce the reference worked example: two 1% employee
    schemes with caps far above the test salaries, brackets 5M@5%,
    20M@15%, unbounded@25%, threshold 4.5M.
    """
    if schemes is None:
        schemes = (
            InsuranceSchemeDef(
                code="HEALTH",
                name="Health insurance",
                employee_rate=Decimal("0.01"),
                employer_rate=Decimal("0.04"),
                salary_cap=Decimal("100000000"),
            ),
            InsuranceSchemeDef(
                code="EMPLOYMENT",
                name="Employment insurance",
                employee_rate=Decimal("0.01"),
                employer_rate=Decimal("0.02"),
                salary_cap=Decimal("100000000"),
            ),
        )
    if brackets is None:
        brackets = (
            TaxBracketDef(upper_limit=Decimal("5000000"), rate=Decimal("0.05")),
            TaxBracketDef(upper_limit=Decimal("20000000"), rate=Decimal("0.15")),
            TaxBracketDef(upper_limit=None, rate=Decimal("0.25")),
        )
    return with_checksum(
        StatutoryRates(
            version=version,
            jurisdiction="ID",
            currency=currency,
            effective_from=effective_from,
            effective_to=effective_to,
            insurance_schemes=schemes,
            tax_brackets=brackets,
            non_taxable_threshold=threshold,
            tax_reliefs=reliefs,
        )
    )


@pytest.fixture
def rates() -> StatutoryRates:
    """Rate table of the reference worked example."""
    return make_rates()


@pytest.fixture
def statutory_rates() -> StatutoryRates:
    """The bundled Indonesian 2025 statutory table."""
    return get_active_rates("ID", date(2025, 1, 31))


# =============================================================================
# Employee fixtures
# =============================================================================


@pytest.fixture
def make_employee(company_id):
    """Factory for Employee DTOs."""

    def _make(
        number: str,
        base_salary: Decimal = Decimal("10000000"),
        *,
        status: EmploymentStatus = EmploymentStatus.ACTIVE,
        department: str | None = None,
        employee_company_id: UUID | None = None,
        tax_status: str | None = None,
    ) -> Employee:
        return Employee(
            id=uuid4(),
            company_id=employee_company_id or company_id,
            employee_number=number,
            full_name=f"Employee {number}",
            base_salary=base_salary,
            department=department,
            status=status,
            tax_status=tax_status,
        )

    return _make


@pytest.fixture
def create_employees(session, test_actor_id):
    """Persist Employee DTOs to the roster table."""

    def _create(*employees: Employee) -> list[Employee]:
        for employee in employees:
            session.add(EmployeeModel.from_dto(employee, created_by_id=test_actor_id))
        session.commit()
        return list(employees)

    return _create


@pytest.fixture
def rates_factory():
    """Factory for custom rate tables (see ``make_rates``)."""
    return make_rates
