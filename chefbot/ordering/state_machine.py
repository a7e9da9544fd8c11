# chefbot/ordering/state_machine.py
"""
Dialogue workflow per session:

    greeting -> ordering -> confirming -> payment -> completed

`confirming` and `payment` fall back to `ordering` when the order changes
again, and `confirming` falls back when recording the order fails. The
machine does no I/O: it returns DueAction objects for the caller to run.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List

from .domain import ActionType, DueAction, Intent, IntentAnalysis, Session, Stage

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[Stage, FrozenSet[Stage]] = {
    Stage.GREETING: frozenset({Stage.ORDERING}),
    Stage.ORDERING: frozenset({Stage.CONFIRMING}),
    Stage.CONFIRMING: frozenset({Stage.ORDERING, Stage.PAYMENT}),
    Stage.PAYMENT: frozenset({Stage.ORDERING, Stage.COMPLETED}),
    Stage.COMPLETED: frozenset(),
}


class InvalidTransition(Exception):
    pass


class SessionStateMachine:
    def can_move(self, session: Session, to: Stage) -> bool:
        return to == session.stage or to in TRANSITIONS[session.stage]

    def _move(self, session: Session, to: Stage) -> None:
        if to == session.stage:
            return
        if to not in TRANSITIONS[session.stage]:
            raise InvalidTransition(f"{session.stage.value} -> {to.value}")
        logger.info("Session %s: %s -> %s", session.conversation_key, session.stage.value, to.value)
        session.stage = to

    # ----------------------------
    # Per-turn
    # ----------------------------
    def advance(self, session: Session, analysis: IntentAnalysis, order_changed: bool = False) -> List[DueAction]:
        """
        Apply one classified turn. `order_changed` is True when the
        aggregator added or removed lines during this turn.
        """
        if session.stage == Stage.COMPLETED:
            return []

        due: List[DueAction] = []
        fields = analysis.extracted

        newly_seated = False
        if fields.table_number is not None:
            newly_seated = newly_seated or session.table_number is None
            session.table_number = fields.table_number
        if fields.party_size is not None:
            newly_seated = newly_seated or session.party_size is None
            session.party_size = fields.party_size

        if session.stage == Stage.GREETING and newly_seated:
            self._move(session, Stage.ORDERING)
            due.append(DueAction(type=ActionType.SHOW_MENU))

        if order_changed and session.stage != Stage.ORDERING:
            if session.stage == Stage.PAYMENT:
                # the recorded order no longer matches; a new confirmation records again
                session.recorded_order_id = None
            self._move(session, Stage.ORDERING)

        if analysis.intent == Intent.CONFIRMATION:
            due.extend(self._on_confirmation(session))
        elif analysis.intent == Intent.PAYMENT:
            due.extend(self._on_payment(session))

        return due

    def _on_confirmation(self, session: Session) -> List[DueAction]:
        order = session.current_order
        if order.is_empty():
            if session.stage in (Stage.GREETING, Stage.ORDERING):
                self._move(session, Stage.ORDERING)
            return [DueAction(type=ActionType.REQUEST_ITEMS, payload={"reason": "empty_order"})]

        if session.stage in (Stage.GREETING, Stage.ORDERING):
            self._move(session, Stage.ORDERING)
            self._move(session, Stage.CONFIRMING)
            return self._confirmation_actions(session)

        if session.stage == Stage.CONFIRMING:
            # order not recorded yet (caller never ran the action); schedule it again
            return self._confirmation_actions(session)

        return [DueAction(type=ActionType.PRESENT_PAYMENT_OPTIONS)]

    def _on_payment(self, session: Session) -> List[DueAction]:
        if session.stage in (Stage.CONFIRMING, Stage.PAYMENT):
            return [DueAction(type=ActionType.PRESENT_PAYMENT_OPTIONS)]
        if session.current_order.is_empty():
            return [DueAction(type=ActionType.REQUEST_ITEMS, payload={"reason": "empty_order"})]
        return [DueAction(type=ActionType.REQUEST_CONFIRMATION)]

    def _confirmation_actions(self, session: Session) -> List[DueAction]:
        order = session.current_order
        payload: Dict[str, Any] = {
            "total": f"{order.total:.2f}",
            "item_count": sum(line.quantity for line in order.items),
        }
        return [
            DueAction(type=ActionType.PERSIST_ORDER, payload=payload),
            DueAction(type=ActionType.REQUEST_PAYMENT_METHOD),
        ]

    # ----------------------------
    # Hooks driven by the caller
    # ----------------------------
    def order_recorded(self, session: Session, order_id: Any) -> bool:
        """confirming -> payment once the order is durably stored."""
        if session.stage != Stage.CONFIRMING:
            logger.warning("Order recorded for %s outside confirming (%s)", session.conversation_key, session.stage.value)
            return False
        session.recorded_order_id = order_id
        session.order_history.append(session.current_order.model_copy(deep=True))
        self._move(session, Stage.PAYMENT)
        return True

    def order_failed(self, session: Session) -> None:
        """Roll back so the next confirmation retries."""
        if session.stage == Stage.CONFIRMING:
            self._move(session, Stage.ORDERING)

    def payment_received(self, session: Session) -> bool:
        """payment -> completed; the session keeps its data but takes no more edits."""
        if session.stage != Stage.PAYMENT:
            return False
        self._move(session, Stage.COMPLETED)
        return True
