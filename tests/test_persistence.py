from decimal import Decimal

from chefbot.models import StoredOrder, StoredOrderItem
from chefbot.ordering.domain import OrderLineItem, OrderSubmission, Stage
from chefbot.persistence import SqlOrderPersistence


def _submission():
    lines = [
        OrderLineItem(menu_item_id="8", name="Caipirinha", price="14.90", quantity=2),
        OrderLineItem(menu_item_id="1", name="Bruschetta", price="18.90", quantity=1),
    ]
    return OrderSubmission(
        conversation_key="chat-1",
        platform="whatsapp",
        table_number=5,
        party_size=3,
        customer_name="Ana",
        customer_phone="5511988887777",
        total=Decimal("48.70"),
        items=lines,
    )


class FailingSecondLine(SqlOrderPersistence):
    def __init__(self, db):
        super().__init__(db)
        self.calls = 0

    def add_line_item(self, order_id, line):
        self.calls += 1
        if self.calls == 2:
            raise RuntimeError("disk full")
        return super().add_line_item(order_id, line)


def test_create_order_and_lines(db_session):
    persistence = SqlOrderPersistence(db_session)
    submission = _submission()

    order_id = persistence.create_order(submission)
    for line in submission.items:
        persistence.add_line_item(order_id, line)
    persistence.commit()

    stored = persistence.get_order(order_id)
    assert stored is not None
    assert stored.status == "pending"
    assert stored.table_number == 5
    assert stored.customer_name == "Ana"
    assert Decimal(stored.total_amount) == Decimal("48.70")
    assert sorted((i.name, i.quantity) for i in stored.items) == [("Bruschetta", 1), ("Caipirinha", 2)]


def test_rollback_discards_header_and_lines(db_session):
    persistence = SqlOrderPersistence(db_session)
    submission = _submission()

    order_id = persistence.create_order(submission)
    persistence.add_line_item(order_id, submission.items[0])
    persistence.rollback()

    assert db_session.query(StoredOrder).count() == 0
    assert db_session.query(StoredOrderItem).count() == 0


def test_mark_paid(db_session):
    persistence = SqlOrderPersistence(db_session)
    order_id = persistence.create_order(_submission())
    persistence.commit()

    paid = persistence.mark_paid(order_id)

    assert paid is not None and paid.status == "paid"
    assert db_session.get(StoredOrder, order_id).status == "paid"


def test_mark_paid_unknown_order(db_session):
    assert SqlOrderPersistence(db_session).mark_paid(999) is None


def test_failed_line_leaves_no_partial_order(engine, store, db_session):
    first = engine.process_turn("chat-1", "web", "quero 2 caipirinhas e um bruschetta")
    assert len(first.order.items) == 2
    confirm = engine.process_turn("chat-1", "web", "confirma")
    session = store.get("chat-1")

    results = engine.execute_due_actions(session, confirm.due_actions, FailingSecondLine(db_session))

    assert [r.ok for r in results] == [False]
    assert session.stage == Stage.ORDERING
    assert db_session.query(StoredOrder).count() == 0
    assert db_session.query(StoredOrderItem).count() == 0

    retry = engine.process_turn("chat-1", "web", "confirma")
    results = engine.execute_due_actions(session, retry.due_actions, SqlOrderPersistence(db_session))

    assert [r.ok for r in results] == [True]
    assert session.stage == Stage.PAYMENT
    orders = db_session.query(StoredOrder).all()
    assert len(orders) == 1
    assert orders[0].id == session.recorded_order_id
    assert sorted((i.name, i.quantity) for i in orders[0].items) == [("Bruschetta", 1), ("Caipirinha", 2)]
