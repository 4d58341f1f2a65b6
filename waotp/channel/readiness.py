"""
Channel Readiness Gate
======================
Tracks whether the outbound messaging channel can accept send requests.

Transitions:
    disconnected -> connecting -> ready -> {disconnected, auth_failed}

``auth_failed`` is left only through ``connecting`` or ``qr`` (the
collaborator re-initialised). Leaving ``ready`` revokes dispatch permission immediately.
"""

import time
from typing import Any, Callable, Dict, List, Optional

import structlog

from .models import ChannelEvent, ChannelState

logger = structlog.get_logger(__name__)

StateListener = Callable[[ChannelState], None]


class ReadinessGate:
    """
    Explicit owner of the channel connectivity state.

    Pure state tracking: no I/O. Writers are the collaborator's event
    callbacks; readers are every issuance request.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._state = ChannelState.DISCONNECTED
        self._listeners: List[StateListener] = []
        self.last_reason: Optional[str] = None
        self.pairing_code: Optional[str] = None
        self.changed_at: float = clock()
        self.transitions = 0

    @property
    def state(self) -> ChannelState:
        return self._state

    def is_ready(self) -> bool:
        return self._state is ChannelState.READY

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked after every state change."""
        self._listeners.append(listener)

    def _transition(self, new_state: ChannelState, reason: Optional[str] = None) -> bool:
        if new_state is self._state:
            return False

        old_state = self._state
        self._state = new_state
        self.changed_at = self._clock()
        self.transitions += 1
        self.last_reason = reason

        logger.info(
            "Channel state changed",
            old_state=old_state.value,
            new_state=new_state.value,
            reason=reason,
        )
        for listener in self._listeners:
            listener(new_state)
        return True

    # -------------------------------------------------------------------------
    # Transition handlers
    # -------------------------------------------------------------------------

    def on_connecting(self) -> bool:
        if self._state is ChannelState.READY:
            logger.warning("Ignoring connecting event while ready")
            return False
        return self._transition(ChannelState.CONNECTING)

    def on_qr(self, payload: Optional[str]) -> bool:
        """Record a pairing payload; a fresh QR means the client is (re)pairing."""
        if self._state is ChannelState.READY:
            logger.warning("Ignoring QR event while ready")
            return False
        self.pairing_code = payload
        logger.info("Pairing code received")
        return self._transition(ChannelState.CONNECTING)

    def on_ready(self) -> bool:
        if self._state is ChannelState.AUTH_FAILED:
            logger.warning("Ignoring ready event after auth failure; waiting for re-initialisation")
            return False
        self.pairing_code = None
        return self._transition(ChannelState.READY)

    def on_disconnected(self, reason: Optional[str] = None) -> bool:
        if self._state is ChannelState.AUTH_FAILED:
            return False
        self.pairing_code = None
        return self._transition(ChannelState.DISCONNECTED, reason)

    def on_auth_failed(self, detail: Optional[str] = None) -> bool:
        self.pairing_code = None
        changed = self._transition(ChannelState.AUTH_FAILED, detail)
        if changed:
            logger.error("Channel authentication failed", detail=detail)
        return changed

    def handle(self, event: ChannelEvent, detail: Optional[str] = None) -> bool:
        """
        Apply an inbound lifecycle event.

        Args:
            event: Lifecycle event from the messaging collaborator
            detail: QR payload, disconnect reason or auth failure message

        Returns:
            True if the state changed
        """
        event = ChannelEvent(event)
        if event is ChannelEvent.QR:
            return self.on_qr(detail)
        if event is ChannelEvent.CONNECTING:
            return self.on_connecting()
        if event is ChannelEvent.READY:
            return self.on_ready()
        if event is ChannelEvent.AUTH_FAILURE:
            return self.on_auth_failed(detail)
        return self.on_disconnected(detail)

    def snapshot(self) -> Dict[str, Any]:
        """Current state for status endpoints (pairing payload excluded)."""
        return {
            "state": self._state.value,
            "ready": self.is_ready(),
            "last_reason": self.last_reason,
            "changed_at": self.changed_at,
            "transitions": self.transitions,
            "awaiting_pairing": self.pairing_code is not None,
        }
