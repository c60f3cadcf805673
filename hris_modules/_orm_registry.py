"""
Loads every payroll ORM module so their tables are on ``Base.metadata``.

``hris_kernel.db.engine.create_tables`` imports this lazily; the kernel never
imports it at module level.
"""


def import_all_orm_models() -> None:
    """Import every ``hris_modules.*.orm`` module (idempotent)."""
    # fmt: off
    import hris_modules.payroll.orm  # noqa: F401
    # fmt: on


def create_all_tables() -> None:
    """Create the payroll tables, then install the sealed-period guards.

    Needs an engine from ``init_engine_from_url()``.
    """
    from hris_kernel.db.engine import create_tables
    from hris_modules.payroll.immutability import register_immutability_listeners

    import_all_orm_models()
    create_tables()
    register_immutability_listeners()
