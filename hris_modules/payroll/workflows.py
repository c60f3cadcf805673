"""Payroll Workflows.

State machine for the payroll period lifecycle:

    draft -> processing -> approved -> paid
      \\          \\            \\
       +----------+------------+--> cancelled
"""

from hris_kernel.domain.workflow import Guard, Transition, Workflow
from hris_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

RATES_AVAILABLE = Guard(
    name="rates_available",
    description="A valid statutory rate table is in force for the period",
)

APPROVER_IDENTIFIED = Guard(
    name="approver_identified",
    description="An approver is recorded for the period",
)


# -----------------------------------------------------------------------------
# Payroll Period Workflow
# -----------------------------------------------------------------------------

PAYROLL_PERIOD_WORKFLOW = Workflow(
    name="payroll_period",
    description="Payroll period lifecycle",
    initial_state="draft",
    states=(
        "draft",
        "processing",
        "approved",
        "paid",
        "cancelled",
    ),
    transitions=(
        Transition("draft", "processing", action="process", guard=RATES_AVAILABLE),
        Transition("processing", "approved", action="approve", guard=APPROVER_IDENTIFIED),
        Transition("approved", "paid", action="mark_paid"),
        Transition("draft", "cancelled", action="cancel"),
        Transition("processing", "cancelled", action="cancel"),
        Transition("approved", "cancelled", action="cancel"),
    ),
    terminal_states=("paid", "cancelled"),
)

logger.debug(
    "payroll_period_workflow_registered",
    extra={
        "workflow_name": PAYROLL_PERIOD_WORKFLOW.name,
        "state_count": len(PAYROLL_PERIOD_WORKFLOW.states),
        "transition_count": len(PAYROLL_PERIOD_WORKFLOW.transitions),
        "initial_state": PAYROLL_PERIOD_WORKFLOW.initial_state,
    },
)
