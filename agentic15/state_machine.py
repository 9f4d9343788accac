"""State machine for task status.

Uses the transitions library so every status change in the workflow goes
through one table of allowed moves:

    pending -> in_progress -> completed
    pending / in_progress -> blocked -> pending

``reset`` sends an abandoned in-progress task back to pending, and
``force_reset`` does the same from completed or blocked.
"""

from typing import List

from transitions import Machine, MachineError

from agentic15.errors import InvalidTransitionError
from agentic15.models import TaskStatus


class TaskStateMachine:
    """Validates status changes for a single task.

    Example usage:
        >>> sm = TaskStateMachine("pending")
        >>> sm.start()
        >>> sm.current_state
        'in_progress'
        >>> sm.can_transition_to("pending")
        True
    """

    STATES = [status.value for status in TaskStatus]

    TRANSITIONS = [
        {"trigger": "start", "source": "pending", "dest": "in_progress"},
        {"trigger": "complete", "source": "in_progress", "dest": "completed"},
        {"trigger": "block", "source": ["pending", "in_progress"], "dest": "blocked"},
        {"trigger": "unblock", "source": "blocked", "dest": "pending"},
        {"trigger": "reset", "source": "in_progress", "dest": "pending"},
        {"trigger": "force_reset", "source": ["completed", "blocked"], "dest": "pending"},
    ]

    def __init__(self, initial_state: str = "pending") -> None:
        """Initialize the state machine.

        Args:
            initial_state: Current task status

        Raises:
            ValueError: If the status is not valid
        """
        initial_state = TaskStatus(initial_state).value
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=initial_state,
            auto_transitions=False,  # Only allow explicitly defined transitions
            send_event=False,
        )

    @property
    def current_state(self) -> str:
        return str(getattr(self, "state"))

    def can_transition_to(self, target_state: str) -> bool:
        """Whether any trigger moves the current state to ``target_state``."""
        for t in self.TRANSITIONS:
            sources = t["source"] if isinstance(t["source"], list) else [t["source"]]
            if self.current_state in sources and t["dest"] == target_state:
                return True
        return False

    def fire(self, trigger: str) -> str:
        """Fire ``trigger`` and return the new state.

        Raises:
            InvalidTransitionError: If the trigger is not allowed from the current state
        """
        source = self.current_state
        targets = [t["dest"] for t in self.TRANSITIONS if t["trigger"] == trigger]
        try:
            self.trigger(trigger)
        except (MachineError, AttributeError) as e:
            dest = targets[0] if targets else trigger
            raise InvalidTransitionError(
                source, dest, f"Cannot {trigger.replace('_', ' ')} a task that is {source}"
            ) from e
        return self.current_state


def allowed_triggers(state: str) -> List[str]:
    """Triggers that are valid from ``state``."""
    state = TaskStateMachine(state).current_state
    triggers = set()
    for t in TaskStateMachine.TRANSITIONS:
        sources = t["source"] if isinstance(t["source"], list) else [t["source"]]
        if state in sources:
            triggers.add(t["trigger"])
    return sorted(triggers)
