"""
Presentation state machine.

Owns the single SessionState record. Every mutation goes through one of the
event methods below, and subscribers receive a frozen snapshot after each
change. Phases:

    Idle -> Loading -> Success | Error

Nothing is terminal; a new estimate request always starts from Loading again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from demolition_backend.ai.errors import EstimationError, UnknownError, ValidationError
from demolition_backend.session.intake import IntakeResult, append_decoded, decode_files
from demolition_backend.session.store import PendingImage, PreviewStore

logger = logging.getLogger(__name__)

Pipeline = Callable[[Sequence[PendingImage]], Awaitable[str]]
Subscriber = Callable[["SessionSnapshot"], None]


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class EstimationOutcome:
    text: str


@dataclass(frozen=True)
class ErrorState:
    message: str
    kind: str = "unknown"
    human_readable: bool = True

    @classmethod
    def from_exception(cls, exc: EstimationError) -> "ErrorState":
        return cls(message=exc.user_message, kind=exc.kind)


@dataclass
class SessionState:
    store: PreviewStore = field(default_factory=PreviewStore)
    phase: Phase = Phase.IDLE
    result: Optional[EstimationOutcome] = None
    error: Optional[ErrorState] = None


@dataclass(frozen=True)
class SessionSnapshot:
    images: Tuple[PendingImage, ...]
    phase: Phase
    result: Optional[EstimationOutcome] = None
    error: Optional[ErrorState] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "images": [img.to_dict() for img in self.images],
            "phase": self.phase.value,
            "result": {"text": self.result.text} if self.result else None,
            "error": (
                {"message": self.error.message, "kind": self.error.kind, "human_readable": True}
                if self.error
                else None
            ),
        }


class PresentationStateMachine:
    def __init__(self, pipeline: Pipeline, state: Optional[SessionState] = None):
        self.pipeline = pipeline
        self._state = state or SessionState()
        self._subscribers: List[Subscriber] = []

    # -------------------------
    # Observation
    # -------------------------

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def is_loading(self) -> bool:
        return self._state.phase is Phase.LOADING

    def snapshot(self) -> SessionSnapshot:
        s = self._state
        return SessionSnapshot(images=s.store.images, phase=s.phase, result=s.result, error=s.error)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; the returned function unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        snap = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snap)
            except Exception:
                logger.exception("Session subscriber %r failed", callback)

    # -------------------------
    # Events
    # -------------------------

    async def submit_files(self, selected: Sequence[Any]) -> IntakeResult:
        if self.is_loading:
            logger.info("Ignoring upload while an estimate is in progress")
            return IntakeResult()
        if self._state.store.is_full:
            logger.info("Ignoring upload, image limit already reached")
            return IntakeResult()

        if not selected:
            return IntakeResult()

        decoded, skipped = await decode_files(selected)
        # an estimate may have started while the batch was decoding
        if self.is_loading:
            logger.info("Discarding %d decoded image(s), an estimate started during upload", len(decoded))
            return IntakeResult(dropped=len(decoded), skipped=skipped)

        result = append_decoded(self._state.store, decoded, skipped)
        self._notify()
        return result

    def remove_image(self, image_id: str) -> Tuple[PendingImage, ...]:
        if self.is_loading:
            logger.info("Ignoring removal of %s while an estimate is in progress", image_id)
            return self._state.store.images

        images = self._state.store.remove(image_id)
        self._notify()
        return images

    async def request_estimate(self) -> SessionSnapshot:
        s = self._state
        images = s.store.images

        if not images:
            s.result = None
            s.error = ErrorState.from_exception(ValidationError())
            s.phase = Phase.ERROR
            self._notify()
            return self.snapshot()

        s.result = None
        s.error = None
        s.phase = Phase.LOADING
        logger.info("Requesting estimate for %d image(s)", len(images))
        self._notify()

        try:
            text = await self.pipeline(images)
        except EstimationError as exc:
            logger.warning("Estimate failed (%s): %s", exc.kind, exc)
            s.error = ErrorState.from_exception(exc)
            s.phase = Phase.ERROR
        except Exception:
            logger.exception("Unexpected error while getting estimate")
            s.error = ErrorState.from_exception(UnknownError())
            s.phase = Phase.ERROR
        else:
            s.result = EstimationOutcome(text=text)
            s.phase = Phase.SUCCESS

        logger.info("Estimate finished with phase %s", s.phase.value)
        self._notify()
        return self.snapshot()
