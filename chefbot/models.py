# chefbot/models.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .db import Base


class StoredOrder(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True)
    conversation_key = Column(String, index=True, nullable=False)
    platform = Column(String, nullable=False, default="web")
    table_number = Column(Integer, nullable=True)
    party_size = Column(Integer, nullable=True)
    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    status = Column(String, default="pending")  # pending | paid
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    special_instructions = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    items = relationship("StoredOrderItem", back_populates="order", cascade="all, delete-orphan")


class StoredOrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("StoredOrder", back_populates="items")
