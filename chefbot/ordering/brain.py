# chefbot/ordering/brain.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from .cart import apply_mention, build_summary, remove_mention
from .domain import (
    ActionResult,
    ActionType,
    CustomerInfo,
    DueAction,
    ExtractedItem,
    Intent,
    IntentAnalysis,
    MenuItem,
    OrderLineItem,
    OrderPersistenceError,
    OrderSubmission,
    Session,
    Stage,
    TurnResult,
)
from .intents import IntentClassifier
from .matcher import find_mentions, suggest_similar
from .nlp import normalize
from .quantity import find_quantity
from .session_store import SessionStore
from .state_machine import SessionStateMachine

logger = logging.getLogger(__name__)

TRANSCRIPT_LIMIT = 20


class CatalogProvider(Protocol):
    currency_symbol: str

    def list_available_items(self) -> List[MenuItem]: ...

    def synonyms(self) -> Dict[str, List[str]]: ...


class OrderPersistence(Protocol):
    def create_order(self, submission: OrderSubmission) -> Any: ...

    def add_line_item(self, order_id: Any, line: OrderLineItem) -> Any: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

def build_submission(session: Session) -> OrderSubmission:
    order = session.current_order
    return OrderSubmission(
        conversation_key=session.conversation_key,
        platform=session.platform,
        table_number=session.table_number,
        party_size=session.party_size,
        customer_name=session.customer.name,
        customer_phone=session.customer.phone,
        total=order.total,
        special_instructions=order.special_instructions,
        items=[line.model_copy() for line in order.items],
    )


def table_context(session: Session) -> str:
    parts: List[str] = []
    if session.table_number is not None:
        parts.append(f"Mesa {session.table_number}")
    if session.party_size is not None:
        parts.append(f"{session.party_size} pessoa(s)")
    return ", ".join(parts) if parts else "Mesa e pessoas ainda não informadas"


class OrderingEngine:
    """
    One inbound message in, structured result out:
      normalize -> classify + match/quantify -> aggregate -> state machine
    The engine performs no I/O of its own; PERSIST_ORDER is executed by the
    caller through execute_due_actions with a persistence collaborator.
    """

    def __init__(
        self,
        store: SessionStore,
        catalog: CatalogProvider,
        classifier: Optional[IntentClassifier] = None,
        machine: Optional[SessionStateMachine] = None,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.classifier = classifier or IntentClassifier()
        self.machine = machine or SessionStateMachine()

    # ----------------------------
    # processTurn
    # ----------------------------
    def process_turn(
        self,
        conversation_key: str,
        platform: str,
        raw_utterance: str,
        customer_info: Union[CustomerInfo, Mapping[str, Any], None] = None,
    ) -> TurnResult:
        session = self.store.get_or_create(conversation_key, platform)
        if platform:
            session.platform = platform
        self._merge_customer(session, customer_info)

        text = normalize(raw_utterance)
        analysis = self.classifier.classify(text)
        self._extract_items(text, analysis)

        due: List[DueAction] = []
        changed = False
        if analysis.extracted.items:
            if session.stage == Stage.COMPLETED:
                due.append(DueAction(type=ActionType.ORDER_CLOSED))
            else:
                changed = self._apply_items(session, analysis)

        due.extend(self.machine.advance(session, analysis, order_changed=changed))

        if (
            not analysis.extracted.items
            and analysis.intent in (Intent.ORDERING, Intent.REMOVAL)
            and session.stage != Stage.COMPLETED
        ):
            due.append(self._similar_items_action(text))
            analysis.suggest(ActionType.SUGGEST_SIMILAR_ITEMS)

        session.transcript.append({"role": "user", "content": raw_utterance or ""})
        del session.transcript[:-TRANSCRIPT_LIMIT]
        self.store.touch(session)

        logger.debug(
            "Turn %s: intent=%s stage=%s items=%d actions=%s",
            conversation_key,
            analysis.intent.value,
            session.stage.value,
            len(analysis.extracted.items),
            [a.type.value for a in due],
        )

        return TurnResult(
            conversation_key=conversation_key,
            intent=analysis.intent,
            extracted=analysis.extracted,
            order=session.current_order.model_copy(deep=True),
            stage=session.stage,
            due_actions=due,
            reply_context=self.reply_context(session, analysis, due),
        )

    def _merge_customer(self, session: Session, info: Union[CustomerInfo, Mapping[str, Any], None]) -> None:
        if info is None:
            return
        data = info.model_dump() if isinstance(info, CustomerInfo) else dict(info)
        if data.get("name"):
            session.customer.name = str(data["name"])
        if data.get("phone"):
            session.customer.phone = str(data["phone"])

    def _extract_items(self, text: str, analysis: IntentAnalysis) -> None:
        items = self.catalog.list_available_items()
        for m in find_mentions(text, items, self.catalog.synonyms()):
            qty = find_quantity(text, m.span_start, m.span_end)
            analysis.extracted.items.append(
                ExtractedItem(
                    menu_item_id=m.item.id,
                    name=m.item.name,
                    price=m.item.price,
                    quantity=qty or 1,
                    strength=m.strength,
                    explicit_quantity=qty is not None,
                )
            )

    def _apply_items(self, session: Session, analysis: IntentAnalysis) -> bool:
        order = session.current_order
        by_id = {it.id: it for it in self.catalog.list_available_items()}
        changed = False

        for x in analysis.extracted.items:
            if analysis.intent == Intent.REMOVAL:
                if order.find_line(x.menu_item_id) is None:
                    continue
                remove_mention(order, x.menu_item_id, x.quantity if x.explicit_quantity else None)
                changed = True
            else:
                item = by_id.get(x.menu_item_id)
                if item is None:
                    continue
                apply_mention(order, item, x.quantity)
                changed = True
        return changed

    def _similar_items_action(self, text: str) -> DueAction:
        similar = suggest_similar(text, self.catalog.list_available_items())
        return DueAction(
            type=ActionType.SUGGEST_SIMILAR_ITEMS,
            payload={
                "suggestions": [
                    {"id": it.id, "name": it.name, "price": f"{it.price:.2f}", "similarity": score}
                    for it, score in similar
                ]
            },
        )

    # ----------------------------
    # Context for the reply generator
    # ----------------------------
    def reply_context(self, session: Session, analysis: IntentAnalysis, due: Sequence[DueAction]) -> Dict[str, Any]:
        symbol = getattr(self.catalog, "currency_symbol", "R$")
        summary, total = build_summary(session.current_order, currency_symbol=symbol)
        suggestions: List[Dict[str, Any]] = []
        for a in due:
            if a.type == ActionType.SUGGEST_SIMILAR_ITEMS:
                suggestions = list(a.payload.get("suggestions") or [])

        return {
            "stage": session.stage.value,
            "intent": analysis.intent.value,
            "table_context": table_context(session),
            "table_number": session.table_number,
            "party_size": session.party_size,
            "customer_name": session.customer.name,
            "order_summary": summary,
            "order_total": f"{total:.2f}",
            "currency_symbol": symbol,
            "extracted_items": [f"{x.quantity}x {x.name}" for x in analysis.extracted.items],
            "due_actions": [a.type.value for a in due],
            "suggestions": suggestions,
        }

    # ----------------------------
    # Due actions
    # ----------------------------
    def execute_due_actions(
        self,
        session: Session,
        actions: Sequence[DueAction],
        persistence: OrderPersistence,
    ) -> List[ActionResult]:
        """
        Runs PERSIST_ORDER against `persistence` as one unit: the header and
        every line are committed together or rolled back together. On
        success the session moves to payment; on failure the error is
        returned on the result and the session goes back to ordering.
        """
        results: List[ActionResult] = []
        for action in actions:
            if action.type != ActionType.PERSIST_ORDER:
                continue
            try:
                order_id = persistence.create_order(build_submission(session))
                for line in session.current_order.items:
                    persistence.add_line_item(order_id, line)
                persistence.commit()
            except Exception as e:
                logger.error("Recording order for %s failed: %s", session.conversation_key, e, exc_info=True)
                self._rollback(persistence)
                self.machine.order_failed(session)
                results.append(
                    ActionResult(
                        action=action,
                        ok=False,
                        error=OrderPersistenceError(f"Could not record order: {e}", cause=e),
                    )
                )
                continue

            logger.info("Stored order #%s for %s (table %s)", order_id, session.conversation_key, session.table_number)
            self.machine.order_recorded(session, order_id)
            results.append(ActionResult(action=action, ok=True, order_id=order_id))
        return results

    def _rollback(self, persistence: OrderPersistence) -> None:
        try:
            persistence.rollback()
        except Exception:
            logger.exception("Rollback after failed order recording also failed")

    def payment_received(self, conversation_key: str) -> bool:
        session = self.store.get(conversation_key)
        if session is None:
            return False
        ok = self.machine.payment_received(session)
        if ok:
            self.store.touch(session)
        return ok

    def record_reply(self, session: Session, reply: str) -> None:
        session.transcript.append({"role": "assistant", "content": reply})
        del session.transcript[:-TRANSCRIPT_LIMIT]
