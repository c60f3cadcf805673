"""
Tests for the kernel database layer: engine lifecycle, session scope,
column types and currency rounding.
"""

from decimal import ROUND_DOWN, Decimal
from uuid import UUID

import pytest
from sqlalchemy import inspect, select

from hris_kernel.db.engine import (
    get_engine,
    get_session,
    is_postgres,
    reset_engine,
    session_scope,
)
from hris_kernel.db.types import currency_decimal_places, round_currency, round_money
from hris_modules.payroll.orm import EmployeeModel, PayrollDeductionModel, PayrollPeriodModel


class TestEngineLifecycle:

    def test_uninitialised_engine(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()
        assert is_postgres() is False

    def test_tables_created(self, db_engine):
        tables = set(inspect(db_engine).get_table_names())
        assert {
            "payroll_employees",
            "payroll_periods",
            "payroll_line_items",
            "payroll_line_deductions",
        } <= tables


class TestSessionScope:

    def test_commits_on_success(self, db_engine, make_employee, test_actor_id):
        employee = make_employee("E001")
        with session_scope() as sess:
            sess.add(EmployeeModel.from_dto(employee, created_by_id=test_actor_id))

        with session_scope() as sess:
            assert sess.get(EmployeeModel, employee.id) is not None

    def test_rolls_back_on_error(self, db_engine, make_employee, test_actor_id):
        employee = make_employee("E001")
        with pytest.raises(RuntimeError):
            with session_scope() as sess:
                sess.add(EmployeeModel.from_dto(employee, created_by_id=test_actor_id))
                sess.flush()
                raise RuntimeError("abort")

        with session_scope() as sess:
            assert sess.scalar(select(EmployeeModel.id)) is None


class TestColumnTypes:

    def test_uuid_round_trip(self, session, make_employee, test_actor_id):
        employee = make_employee("E001")
        session.add(EmployeeModel.from_dto(employee, created_by_id=test_actor_id))
        session.commit()
        session.expire_all()

        model = session.get(EmployeeModel, employee.id)
        assert isinstance(model.id, UUID)
        assert model.company_id == employee.company_id

    def test_decimal_columns(self):
        salary = EmployeeModel.__table__.c.base_salary.type
        assert (salary.precision, salary.scale) == (38, 9)
        rate = PayrollDeductionModel.__table__.c.employee_rate.type
        assert (rate.precision, rate.scale) == (12, 9)
        assert PayrollPeriodModel.__table__.c.currency.type.length == 3
        assert PayrollPeriodModel.__table__.c.rates_checksum.type.length == 64


class TestRounding:

    @pytest.mark.parametrize(
        "value,currency,expected",
        [
            ("1234.5", "IDR", "1235"),
            ("1234.49", "IDR", "1234"),
            ("10.005", "USD", "10.01"),
            ("10.004", "USD", "10.00"),
            ("10.005", "XXX", "10.01"),
        ],
    )
    def test_round_currency_half_up(self, value, currency, expected):
        assert round_currency(Decimal(value), currency) == Decimal(expected)

    def test_decimal_places(self):
        assert currency_decimal_places("IDR") == 0
        assert currency_decimal_places("idr") == 0
        assert currency_decimal_places("USD") == 2
        assert currency_decimal_places("XXX") == 2

    def test_round_money_mode(self):
        assert round_money(Decimal("1.999"), 2, ROUND_DOWN) == Decimal("1.99")
        assert round_money(Decimal("2.5"), 0) == Decimal("3")
