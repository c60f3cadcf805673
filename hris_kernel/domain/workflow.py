"""
Lifecycle state machines as frozen value objects.

The payroll period workflow (draft, processing, approved, paid, cancelled) is
declared with these types, and ``PayrollService`` asks it which transition an
action maps to.  Nothing here does I/O.

A ``Workflow`` rejects transitions that name unknown states, an initial state
outside ``states``, and outgoing transitions from a terminal state.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Descriptive only; the owning service evaluates it.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                f"is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action} "
                    f"{t.from_state}->{t.to_state} references an unknown state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state!r} "
                    f"has outgoing transition {t.action}"
                )

    def transition_for(self, state: str, action: str) -> Transition | None:
        """Return the transition ``action`` fires from ``state``, if any."""
        for t in self.transitions:
            if t.from_state == state and t.action == action:
                return t
        return None

    def source_states(self, action: str) -> tuple[str, ...]:
        """States from which ``action`` is allowed."""
        return tuple(t.from_state for t in self.transitions if t.action == action)

    def allowed_actions(self, state: str) -> tuple[str, ...]:
        """Actions that may fire from ``state``."""
        return tuple(t.action for t in self.transitions if t.from_state == state)
