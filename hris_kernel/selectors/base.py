"""
Read side of the payroll core.

A selector answers questions such as "which employees of this company are
payable in this period" without touching the unit of work: it never adds,
deletes, flushes or commits.  The session it is handed belongs to the
caller, so a selector can run inside the same transaction that later claims
and persists a payroll period.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from hris_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Query helper bound to a caller-owned ``Session``; results are DTOs."""

    def __init__(self, session: Session):
        self.session = session
