from __future__ import annotations
import logging
from enum import Enum

log = logging.getLogger(__name__)


class OperationState(str, Enum):
    IDLE = "idle"
    CREATING = "creating"
    UPDATING = "updating"
    FETCHING = "fetching"
    DELETING = "deleting"


class Status:
    """
    Operation state of one resource: idle, or one operation in flight.

    Every operation goes idle -> <operation> -> idle; `transition` refuses
    to jump between two operations without passing through idle.
    """

    def __init__(self) -> None:
        self.state = OperationState.IDLE

    def transition(self, state: OperationState) -> "Status":
        state = OperationState(state)
        if state is not OperationState.IDLE and self.state not in (OperationState.IDLE, state):
            raise RuntimeError(f"Cannot start {state.value} while {self.state.value}")
        log.debug("status %s -> %s", self.state.value, state.value)
        self.state = state
        return self

    def reset(self) -> "Status":
        self.state = OperationState.IDLE
        return self

    @property
    def idle(self) -> bool:
        return self.state is OperationState.IDLE

    @property
    def busy(self) -> bool:
        return not self.idle

    @property
    def creating(self) -> bool:
        return self.state is OperationState.CREATING

    @property
    def updating(self) -> bool:
        return self.state is OperationState.UPDATING

    @property
    def fetching(self) -> bool:
        return self.state is OperationState.FETCHING

    @property
    def deleting(self) -> bool:
        return self.state is OperationState.DELETING

    @property
    def saving(self) -> bool:
        return self.creating or self.updating

    def as_dict(self) -> dict[str, bool]:
        return {
            "creating": self.creating,
            "updating": self.updating,
            "fetching": self.fetching,
            "deleting": self.deleting,
        }

    def __repr__(self) -> str:
        return f"<Status {self.state.value}>"
