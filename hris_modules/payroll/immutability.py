"""
Payroll immutability listeners (``hris_modules.payroll.immutability``).

Responsibility:
    ORM event listeners that stop approved and paid payroll periods, and the
    line items and deductions under them, from being modified or deleted
    through the ORM.

Architecture position:
    **Modules layer** -- persistence guard.  ``PayrollService`` moves period
    status with compare-and-swap UPDATE statements; these listeners catch
    every other write path (ad-hoc ORM edits, scripts, admin tooling).

Invariants enforced:
    - Sealed periods (approved, paid): only status, paid_at, cancelled_at,
      notes and the audit columns may change, and status may only move
      approved -> paid or approved -> cancelled.
    - Line items and deductions of a sealed or cancelled period cannot be
      inserted, updated or deleted.
    - Sealed periods cannot be deleted.

Failure modes:
    - ``PeriodImmutableError`` raised from the flush; the caller's
      transaction must be rolled back.
"""

from sqlalchemy import event, inspect, select
from sqlalchemy.orm.attributes import get_history

from hris_kernel.exceptions import PeriodImmutableError
from hris_kernel.logging_config import get_logger
from hris_modules.payroll.orm import (
    PayrollDeductionModel,
    PayrollLineItemModel,
    PayrollPeriodModel,
)

logger = get_logger("modules.payroll.immutability")

SEALED_STATUSES = frozenset({"approved", "paid"})
CLOSED_STATUSES = SEALED_STATUSES | {"cancelled"}

_ALLOWED_SEALED_TRANSITIONS = frozenset({
    ("approved", "paid"),
    ("approved", "cancelled"),
})

_MUTABLE_WHEN_SEALED = frozenset({
    "status",
    "paid_at",
    "cancelled_at",
    "notes",
    "updated_at",
    "updated_by_id",
})


def _status_value(value) -> str:
    return value.value if hasattr(value, "value") else value


def _blocked(period_id, status: str, operation: str) -> PeriodImmutableError:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "period_id": str(period_id),
            "status": status,
            "operation": operation,
        },
    )
    return PeriodImmutableError(str(period_id), status, operation)


def _check_period_update(mapper, connection, target):
    """Block edits to approved/paid periods outside the allowed transitions."""
    status_history = get_history(target, "status")

    if status_history.deleted:
        old_status = _status_value(status_history.deleted[0])
    else:
        old_status = _status_value(target.status)

    if old_status not in SEALED_STATUSES:
        return

    if status_history.added:
        new_status = _status_value(status_history.added[0])
        if (old_status, new_status) not in _ALLOWED_SEALED_TRANSITIONS:
            raise _blocked(target.id, old_status, f"move to {new_status}")

    insp = inspect(target)
    for attr in insp.attrs:
        if attr.key in _MUTABLE_WHEN_SEALED:
            continue
        if attr.history.has_changes():
            raise _blocked(target.id, old_status, f"modify {attr.key}")


def _check_period_delete(mapper, connection, target):
    status = _status_value(target.status)
    if status in SEALED_STATUSES:
        raise _blocked(target.id, status, "delete")


def _period_status(connection, period_id) -> str | None:
    return connection.execute(
        select(PayrollPeriodModel.status).where(PayrollPeriodModel.id == period_id)
    ).scalar_one_or_none()


def _line_period_status(connection, line_item_id):
    row = connection.execute(
        select(PayrollLineItemModel.period_id, PayrollPeriodModel.status)
        .join(PayrollPeriodModel, PayrollPeriodModel.id == PayrollLineItemModel.period_id)
        .where(PayrollLineItemModel.id == line_item_id)
    ).one_or_none()
    if row is None:
        return None, None
    return row.period_id, row.status


def _guard_line_item(operation: str):
    def listener(mapper, connection, target):
        status = _period_status(connection, target.period_id)
        if status in CLOSED_STATUSES:
            raise _blocked(target.period_id, status, f"{operation} line item")
    listener.__name__ = f"_check_line_item_{operation}"
    return listener


def _guard_deduction(operation: str):
    def listener(mapper, connection, target):
        line_item_id = target.line_item_id
        if line_item_id is None and target.line_item is not None:
            line_item_id = target.line_item.id
        period_id, status = _line_period_status(connection, line_item_id)
        if status in CLOSED_STATUSES:
            raise _blocked(period_id, status, f"{operation} deduction")
    listener.__name__ = f"_check_deduction_{operation}"
    return listener


_check_line_item_insert = _guard_line_item("insert")
_check_line_item_update = _guard_line_item("update")
_check_line_item_delete = _guard_line_item("delete")
_check_deduction_insert = _guard_deduction("insert")
_check_deduction_update = _guard_deduction("update")
_check_deduction_delete = _guard_deduction("delete")

_LISTENERS = (
    (PayrollPeriodModel, "before_update", _check_period_update),
    (PayrollPeriodModel, "before_delete", _check_period_delete),
    (PayrollLineItemModel, "before_insert", _check_line_item_insert),
    (PayrollLineItemModel, "before_update", _check_line_item_update),
    (PayrollLineItemModel, "before_delete", _check_line_item_delete),
    (PayrollDeductionModel, "before_insert", _check_deduction_insert),
    (PayrollDeductionModel, "before_update", _check_deduction_update),
    (PayrollDeductionModel, "before_delete", _check_deduction_delete),
)


def register_immutability_listeners() -> None:
    """Register the payroll immutability listeners (idempotent)."""
    for target, name, fn in _LISTENERS:
        if not event.contains(target, name, fn):
            event.listen(target, name, fn)


def unregister_immutability_listeners() -> None:
    """Remove the payroll immutability listeners. Primarily for tests."""
    for target, name, fn in _LISTENERS:
        if event.contains(target, name, fn):
            event.remove(target, name, fn)
