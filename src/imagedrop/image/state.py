"""Pipeline lifecycle state machine.

Tracks the state of one upload attempt and enforces valid transitions.
Prevents, for example, inserting an image that was never uploaded or
uploading one that never finished validation.
"""

from __future__ import annotations

from imagedrop.models import FailureReason, PipelineState

_ACTIVE_STATES = frozenset({
    PipelineState.VALIDATING,
    PipelineState.UPLOADING,
    PipelineState.INSERTING,
})

_TERMINAL_STATES = frozenset({PipelineState.SUCCEEDED, PipelineState.FAILED})


class PipelineStateMachine:
    """Finite state machine for the upload pipeline.

    Valid transitions::

        IDLE        -> VALIDATING
        VALIDATING  -> UPLOADING | FAILED
        UPLOADING   -> INSERTING | FAILED
        INSERTING   -> SUCCEEDED | FAILED
        SUCCEEDED   -> IDLE  (reset)
        FAILED      -> IDLE  (reset)

    The failure reason is stored alongside the ``FAILED`` state and
    cleared on reset.
    """

    VALID_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
        PipelineState.IDLE: {PipelineState.VALIDATING},
        PipelineState.VALIDATING: {PipelineState.UPLOADING, PipelineState.FAILED},
        PipelineState.UPLOADING: {PipelineState.INSERTING, PipelineState.FAILED},
        PipelineState.INSERTING: {PipelineState.SUCCEEDED, PipelineState.FAILED},
        PipelineState.SUCCEEDED: {PipelineState.IDLE},
        PipelineState.FAILED: {PipelineState.IDLE},
    }

    def __init__(self) -> None:
        self.state: PipelineState = PipelineState.IDLE
        self.reason: FailureReason | None = None

    @property
    def is_active(self) -> bool:
        """``True`` while an attempt is validating, uploading, or inserting."""
        return self.state in _ACTIVE_STATES

    @property
    def is_terminal(self) -> bool:
        return self.state in _TERMINAL_STATES

    def transition(self, new_state: PipelineState) -> None:
        """Attempt to transition to *new_state*.

        Use :meth:`fail` to enter ``FAILED`` with a reason.

        Raises
        ------
        ValueError
            If the transition from the current state to *new_state* is
            not valid.
        """
        allowed = self.VALID_TRANSITIONS.get(self.state, set())

        if new_state not in allowed:
            raise ValueError(
                f"Invalid state transition: {self.state.value} -> {new_state.value}. "
                f"Allowed transitions from {self.state.value}: "
                f"{{{', '.join(sorted(s.value for s in allowed))}}}"
            )

        self.state = new_state
        if new_state == PipelineState.IDLE:
            self.reason = None

    def fail(self, reason: FailureReason) -> None:
        """Enter ``FAILED`` and record *reason*."""
        self.transition(PipelineState.FAILED)
        self.reason = reason

    def reset(self) -> None:
        """Return to ``IDLE`` from any state.

        Called when a new attempt starts; an attempt that was still active
        has been superseded and its state is discarded.
        """
        self.state = PipelineState.IDLE
        self.reason = None
