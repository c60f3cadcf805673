"""
Payroll Module Service (``hris_modules.payroll.service``).

Responsibility
--------------
Orchestrates the payroll period lifecycle -- opening a period, processing
it against the company roster, approval, payment and cancellation -- by
delegating pure computation to ``helpers.compute_payroll`` and persisting
the result through the payroll ORM models.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``PayrollService`` is the sole public
entry point for payroll period operations.  It composes the roster
(``EmployeeRoster``), the pure aggregator (``compute_payroll``) and the
period workflow (``PAYROLL_PERIOD_WORKFLOW``).

Invariants enforced
-------------------
* Each public write method owns the transaction boundary (``commit`` on
  success, ``rollback`` on failure or exception).
* Every status change is a compare-and-swap ``UPDATE ... WHERE status =
  <expected>``; zero affected rows means another caller won the race.
* Processing is all-or-nothing: line items, deduction rows, totals and the
  rate snapshot commit together, or the period stays in draft with no
  line items.
* All computation happens before the first write, so calculation errors
  never leave partial state.

Failure modes
-------------
* Unknown period  -> ``PeriodNotFoundError``.
* Wrong status, or a concurrent caller moved the period first
  -> ``InvalidStateError``; session rolled back.
* Duplicate company/month/year  -> ``PeriodAlreadyExistsError``.
* Calculation errors (``ValidationError``, ``ConfigurationError``)
  propagate unchanged after rollback.

Audit relevance
---------------
Structured log events are emitted at operation start and on
commit/rejection for every public method, carrying period IDs, actor IDs,
the rate table version and period totals.

Usage::

    service = PayrollService(session, clock=clock)
    period = service.open_period(company_id, month=1, year=2025, actor_id=actor_id)
    rates = get_active_rates("ID", period.start_date)
    result = service.process_period(period.id, rates, actor_id=actor_id)
"""

from __future__ import annotations

import calendar
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hris_config.loader import parse_rates
from hris_config.schema import StatutoryRates
from hris_config.validator import ensure_valid
from hris_engines.overtime import OvertimeEntry
from hris_kernel.domain.clock import Clock, SystemClock
from hris_kernel.exceptions import (
    InvalidRateTableError,
    InvalidStateError,
    LineItemNotFoundError,
    PeriodAlreadyExistsError,
    PeriodNotFoundError,
    ValidationError,
)
from hris_kernel.logging_config import LogContext, get_logger
from hris_modules.payroll.config import PayrollConfig
from hris_modules.payroll.helpers import compute_payroll, refresh_checksum
from hris_modules.payroll.immutability import register_immutability_listeners
from hris_modules.payroll.models import (
    Employee,
    PayrollLineItem,
    PayrollPeriod,
    PayrollRunResult,
    PeriodStatus,
    validate_period_fields,
)
from hris_modules.payroll.orm import PayrollLineItemModel, PayrollPeriodModel
from hris_modules.payroll.payslip import Payslip, build_payslip
from hris_modules.payroll.roster import EmployeeRoster, RosterSelector
from hris_modules.payroll.workflows import PAYROLL_PERIOD_WORKFLOW

logger = get_logger("modules.payroll.service")


class PayrollService:
    """
    Orchestrates payroll period operations.

    Contract
    --------
    * Write methods return frozen DTOs (``PayrollPeriod``,
      ``PayrollRunResult``), never ORM instances.
    * Read methods (``get_period``, ``get_line_items``, ``get_payslip``,
      ``rates_for_period``) never write.

    Guarantees
    ----------
    * Session is committed only when the whole operation succeeded;
      otherwise rolled back.
    * At most one caller moves a period out of any given status.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT look up rate tables; callers pass the table in force
      (``hris_config.get_active_rates``).
    * Does NOT maintain the roster; it only reads it.
    """

    def __init__(
        self,
        session: Session,
        roster: EmployeeRoster | None = None,
        clock: Clock | None = None,
        config: PayrollConfig | None = None,
    ):
        self._session = session
        self._roster = roster or RosterSelector(session)
        self._clock = clock or SystemClock()
        self._config = config or PayrollConfig.with_defaults()
        self._workflow = PAYROLL_PERIOD_WORKFLOW
        register_immutability_listeners()

    # =========================================================================
    # Queries
    # =========================================================================

    def _load_period(self, period_id: UUID) -> PayrollPeriodModel:
        model = self._session.execute(
            select(PayrollPeriodModel)
            .where(PayrollPeriodModel.id == period_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if model is None:
            raise PeriodNotFoundError(str(period_id))
        return model

    def get_period(self, period_id: UUID) -> PayrollPeriod:
        """Return the period, or raise ``PeriodNotFoundError``."""
        return self._load_period(period_id).to_dto()

    def get_line_items(self, period_id: UUID) -> tuple[PayrollLineItem, ...]:
        """Line items of a period ordered by employee number."""
        self._load_period(period_id)
        rows = self._session.scalars(
            select(PayrollLineItemModel)
            .where(PayrollLineItemModel.period_id == period_id)
            .order_by(PayrollLineItemModel.employee_number)
        ).all()
        return tuple(row.to_dto() for row in rows)

    def get_payslip(
        self,
        period_id: UUID,
        employee_id: UUID,
        language: str = "en",
    ) -> Payslip:
        """
        Payslip of one employee for a processed, approved or paid period.

        Raises:
            PeriodNotFoundError: unknown period.
            InvalidStateError: the period is draft or cancelled.
            LineItemNotFoundError: the employee was not paid in the period.
            ValidationError: unsupported ``language``.
        """
        model = self._load_period(period_id)
        if model.status in (PeriodStatus.DRAFT.value, PeriodStatus.CANCELLED.value):
            raise InvalidStateError(
                str(period_id), model.status, "issue payslips for",
                expected_status="processing/approved/paid",
            )
        row = self._session.scalars(
            select(PayrollLineItemModel).where(
                PayrollLineItemModel.period_id == period_id,
                PayrollLineItemModel.employee_id == employee_id,
            )
        ).one_or_none()
        if row is None:
            raise LineItemNotFoundError(str(period_id), str(employee_id))

        payslip = build_payslip(model.to_dto(), row.to_dto(), language)
        logger.info(
            "payslip_generated",
            extra={
                "period_id": str(period_id),
                "employee_id": str(employee_id),
                "language": language,
                "net_pay": str(payslip.net_pay),
            },
        )
        return payslip

    def rates_for_period(self, period_id: UUID) -> StatutoryRates:
        """
        Rebuild the statutory rate table a period was processed with.

        Raises:
            InvalidStateError: the period has not been processed.
            InvalidRateTableError: the stored snapshot fails its checksum.
        """
        model = self._load_period(period_id)
        if model.rates_snapshot is None:
            raise InvalidStateError(
                str(period_id), model.status, "read rate snapshot of",
                expected_status="processed",
            )
        return parse_rates(model.rates_snapshot)

    # =========================================================================
    # Open
    # =========================================================================

    def open_period(
        self,
        company_id: UUID,
        month: int,
        year: int,
        actor_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        payment_date: date | None = None,
        notes: str | None = None,
    ) -> PayrollPeriod:
        """
        Create a draft payroll period.

        Dates default to the calendar month, with payment on its last day.

        Raises:
            InvalidPeriodError: month/year out of range or dates unordered.
            PeriodAlreadyExistsError: the company already has this period.
        """
        # Validate month/year before calendar lookups can fail on them.
        validate_period_fields(month, year, date(2000, 1, 1), date(2000, 1, 1), None)
        start_date = start_date or date(year, month, 1)
        end_date = end_date or date(year, month, calendar.monthrange(year, month)[1])
        payment_date = payment_date or end_date

        period = PayrollPeriod(
            id=uuid4(),
            company_id=company_id,
            month=month,
            year=year,
            start_date=start_date,
            end_date=end_date,
            payment_date=payment_date,
            currency=self._config.currency,
            notes=notes,
        )

        try:
            existing = self._session.scalar(
                select(PayrollPeriodModel.id).where(
                    PayrollPeriodModel.company_id == company_id,
                    PayrollPeriodModel.year == year,
                    PayrollPeriodModel.month == month,
                )
            )
            if existing is not None:
                raise PeriodAlreadyExistsError(str(company_id), month, year)

            self._session.add(PayrollPeriodModel.from_dto(period, created_by_id=actor_id))
            self._session.flush()
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            logger.warning(
                "payroll_period_duplicate_rejected",
                extra={"company_id": str(company_id), "month": month, "year": year},
            )
            raise PeriodAlreadyExistsError(str(company_id), month, year) from None
        except PeriodAlreadyExistsError:
            self._session.rollback()
            logger.warning(
                "payroll_period_duplicate_rejected",
                extra={"company_id": str(company_id), "month": month, "year": year},
            )
            raise
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "payroll_period_opened",
            extra={
                "period_id": str(period.id),
                "company_id": str(company_id),
                "period_name": period.period_name,
                "actor_id": str(actor_id),
            },
        )
        return period

    # =========================================================================
    # Process
    # =========================================================================

    def process_period(
        self,
        period_id: UUID,
        rates: StatutoryRates,
        actor_id: UUID,
        *,
        overtime: Mapping[UUID, Decimal] | None = None,
        overtime_entries: Mapping[UUID, Sequence[OvertimeEntry]] | None = None,
        other_deductions: Mapping[UUID, Decimal] | None = None,
        employees: Sequence[Employee] | None = None,
    ) -> PayrollRunResult:
        """
        Compute and persist payroll for a draft period.

        Preconditions:
            - The period is in draft.
            - ``rates`` is effective on the period's start date.
        Postconditions:
            - The period is in processing with totals, rate version,
              checksum and snapshot recorded.
            - The recorded checksum is recomputed from ``rates``, so
              ``rates_for_period`` returns exactly the table used.
            - One line item (with itemised insurance rows) per active
              employee.

        Raises:
            PeriodNotFoundError, InvalidStateError, InvalidRateTableError,
            InvalidPayrollConfigError, ValidationError.
        """
        with LogContext.bind(period_id=period_id, actor_id=actor_id):
            try:
                model = self._load_period(period_id)
                company_id = model.company_id
                self._require_transition(model, "process")

                ensure_valid(rates)
                if not rates.is_effective(model.start_date):
                    raise InvalidRateTableError(
                        rates.version,
                        [f"not effective on period start {model.start_date.isoformat()}"],
                    )
                rates = refresh_checksum(rates)

                logger.info(
                    "payroll_period_processing_started",
                    extra={
                        "period_id": str(period_id),
                        "company_id": str(company_id),
                        "rates_version": rates.version,
                    },
                )

                if employees is None:
                    employees = self._roster.active_employees(company_id)

                computation = compute_payroll(
                    employees,
                    rates,
                    period_id,
                    config=self._config,
                    overtime=overtime,
                    overtime_entries=overtime_entries,
                    other_deductions=other_deductions,
                )
                totals = computation.totals

                now = self._clock.now()
                self._compare_and_swap(
                    model,
                    "process",
                    actor_id,
                    processed_at=now,
                    processed_by_id=actor_id,
                )

                for item in computation.line_items:
                    self._session.add(
                        PayrollLineItemModel.from_dto(item, created_by_id=actor_id)
                    )
                self._session.flush()

                self._session.execute(
                    update(PayrollPeriodModel)
                    .where(
                        PayrollPeriodModel.id == period_id,
                        PayrollPeriodModel.status == PeriodStatus.PROCESSING.value,
                    )
                    .values(
                        total_employees=totals.employee_count,
                        total_gross=totals.total_gross,
                        total_deductions=totals.total_deductions,
                        total_net=totals.total_net,
                        total_employee_insurance=totals.total_employee_insurance,
                        total_employer_insurance=totals.total_employer_insurance,
                        total_income_tax=totals.total_income_tax,
                        rates_version=computation.rates_version,
                        rates_checksum=computation.rates_checksum,
                        rates_snapshot=rates.to_dict(),
                        updated_by_id=actor_id,
                    )
                    .execution_options(synchronize_session=False)
                )
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            period = self._load_period(period_id).to_dto()

            logger.info(
                "payroll_period_processed",
                extra={
                    "period_id": str(period_id),
                    "company_id": str(company_id),
                    "rates_version": computation.rates_version,
                    "employee_count": totals.employee_count,
                    "skipped_count": len(computation.skipped_employee_ids),
                    "total_gross": str(totals.total_gross),
                    "total_deductions": str(totals.total_deductions),
                    "total_net": str(totals.total_net),
                },
            )
            return PayrollRunResult(
                period=period,
                line_items=computation.line_items,
                totals=totals,
            )

    # =========================================================================
    # Approve / Pay / Cancel
    # =========================================================================

    def approve_period(
        self,
        period_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
    ) -> PayrollPeriod:
        """Move a processed period to approved, recording the approver."""
        if actor_id is None:
            raise ValidationError("Approving a payroll period requires an approver")
        values = {"approved_at": self._clock.now(), "approved_by_id": actor_id}
        if notes is not None:
            values["notes"] = notes
        return self._transition(period_id, "approve", actor_id, values)

    def mark_period_paid(self, period_id: UUID, actor_id: UUID) -> PayrollPeriod:
        """Move an approved period to paid."""
        return self._transition(
            period_id, "mark_paid", actor_id, {"paid_at": self._clock.now()},
        )

    def cancel_period(
        self,
        period_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
    ) -> PayrollPeriod:
        """Cancel a draft, processing or approved period."""
        values = {"cancelled_at": self._clock.now()}
        if reason is not None:
            values["notes"] = reason
        return self._transition(period_id, "cancel", actor_id, values)

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_transition(self, model: PayrollPeriodModel, action: str):
        transition = self._workflow.transition_for(model.status, action)
        if transition is None:
            expected = "/".join(self._workflow.source_states(action)) or None
            logger.warning(
                "payroll_period_transition_rejected",
                extra={
                    "period_id": str(model.id),
                    "status": model.status,
                    "action": action,
                    "expected_status": expected,
                },
            )
            raise InvalidStateError(str(model.id), model.status, action, expected)
        return transition

    def _compare_and_swap(
        self,
        model: PayrollPeriodModel,
        action: str,
        actor_id: UUID,
        **values,
    ) -> str:
        """
        Atomically move ``model`` along ``action`` from the status it was
        read in.  Returns the new status.

        Raises:
            InvalidStateError: another caller changed the status first.
        """
        transition = self._require_transition(model, action)
        result = self._session.execute(
            update(PayrollPeriodModel)
            .where(
                PayrollPeriodModel.id == model.id,
                PayrollPeriodModel.status == transition.from_state,
            )
            .values(status=transition.to_state, updated_by_id=actor_id, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._session.rollback()
            current = self._session.scalar(
                select(PayrollPeriodModel.status).where(PayrollPeriodModel.id == model.id)
            )
            logger.warning(
                "payroll_period_transition_lost_race",
                extra={
                    "period_id": str(model.id),
                    "action": action,
                    "expected_status": transition.from_state,
                    "current_status": current,
                },
            )
            raise InvalidStateError(
                str(model.id), current or "unknown", action, transition.from_state,
            )
        return transition.to_state

    def _transition(
        self,
        period_id: UUID,
        action: str,
        actor_id: UUID,
        values: dict,
    ) -> PayrollPeriod:
        with LogContext.bind(period_id=period_id, actor_id=actor_id):
            try:
                model = self._load_period(period_id)
                from_status = model.status
                logger.info(
                    f"payroll_period_{action}_started",
                    extra={"period_id": str(period_id), "status": from_status},
                )
                to_status = self._compare_and_swap(model, action, actor_id, **values)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                f"payroll_period_{action}_recorded",
                extra={
                    "period_id": str(period_id),
                    "from_status": from_status,
                    "to_status": to_status,
                },
            )
            return self._load_period(period_id).to_dto()
