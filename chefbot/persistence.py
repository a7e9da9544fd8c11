# chefbot/persistence.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .models import StoredOrder, StoredOrderItem
from .ordering.domain import OrderLineItem, OrderSubmission

logger = logging.getLogger(__name__)


class SqlOrderPersistence:
    """
    Order persistence collaborator backed by SQLAlchemy.

    create_order and add_line_item only flush, so ids are assigned but
    nothing is visible to other sessions until commit(). A failure part
    way through is undone with rollback(), header row included.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def create_order(self, submission: OrderSubmission) -> int:
        order = StoredOrder(
            conversation_key=submission.conversation_key,
            platform=submission.platform,
            table_number=submission.table_number,
            party_size=submission.party_size,
            customer_name=submission.customer_name,
            customer_phone=submission.customer_phone,
            total_amount=submission.total,
            special_instructions=submission.special_instructions,
            status="pending",
        )
        self.db.add(order)
        self.db.flush()
        return order.id

    def add_line_item(self, order_id: int, line: OrderLineItem) -> int:
        row = StoredOrderItem(
            order_id=order_id,
            menu_item_id=line.menu_item_id,
            name=line.name,
            quantity=line.quantity,
            unit_price=line.price,
        )
        self.db.add(row)
        self.db.flush()
        return row.id

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def mark_paid(self, order_id: int) -> Optional[StoredOrder]:
        order = self.db.get(StoredOrder, order_id)
        if order is None:
            return None
        order.status = "paid"
        order.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(order)
        logger.info("Order #%s paid", order_id)
        return order

    def get_order(self, order_id: int) -> Optional[StoredOrder]:
        return self.db.get(StoredOrder, order_id)
