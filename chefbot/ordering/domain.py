# chefbot/ordering/domain.py
"""
Pydantic types shared by the ordering core.

MenuItem is a read-only snapshot handed over by the catalog; everything
else here is owned by a single Session and mutated only through the
ordering modules (cart for the order, state_machine for the stage).
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Coerce a price to a Decimal with two places (floats go through str)."""
    if isinstance(value, Decimal):
        d = value
    else:
        d = Decimal(str(value if value is not None else 0))
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Stage(str, Enum):
    GREETING = "greeting"
    ORDERING = "ordering"
    CONFIRMING = "confirming"
    PAYMENT = "payment"
    COMPLETED = "completed"


class Intent(str, Enum):
    ORDERING = "ordering"
    REMOVAL = "removal"
    CONFIRMATION = "confirmation"
    PAYMENT = "payment"
    TABLE_INFO = "table_info"
    PEOPLE_COUNT = "people_count"
    GENERAL = "general"


class ActionType(str, Enum):
    PERSIST_ORDER = "persist_order"
    REQUEST_PAYMENT_METHOD = "request_payment_method"
    REQUEST_ITEMS = "request_items"
    SUGGEST_SIMILAR_ITEMS = "suggest_similar_items"
    PRESENT_PAYMENT_OPTIONS = "present_payment_options"
    REQUEST_CONFIRMATION = "request_confirmation"
    SHOW_MENU = "show_menu"
    ORDER_CLOSED = "order_closed"


# ----------------------------
# Catalog
# ----------------------------
class MenuItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    price: Decimal
    category: str = ""
    available: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> str:
        return str(v)

    @field_validator("price", mode="before")
    @classmethod
    def _price_as_money(cls, v: Any) -> Decimal:
        return to_money(v)


# ----------------------------
# Order
# ----------------------------
class OrderLineItem(BaseModel):
    menu_item_id: str
    name: str
    price: Decimal
    quantity: int = Field(default=1, ge=1)

    @property
    def line_total(self) -> Decimal:
        return to_money(self.price * self.quantity)


class Order(BaseModel):
    items: List[OrderLineItem] = Field(default_factory=list)
    # Written only by cart._recalc_total.
    total: Decimal = Decimal("0.00")
    special_instructions: str = ""

    def is_empty(self) -> bool:
        return not self.items

    def find_line(self, menu_item_id: str) -> Optional[OrderLineItem]:
        for line in self.items:
            if line.menu_item_id == menu_item_id:
                return line
        return None


class CustomerInfo(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


class Session(BaseModel):
    conversation_key: str
    platform: str = "web"
    table_number: Optional[int] = None
    party_size: Optional[int] = None
    customer: CustomerInfo = Field(default_factory=CustomerInfo)
    current_order: Order = Field(default_factory=Order)
    stage: Stage = Stage.GREETING
    recorded_order_id: Optional[Any] = None
    created_at: datetime = Field(default_factory=_utcnow)
    last_activity: datetime = Field(default_factory=_utcnow)
    order_history: List[Order] = Field(default_factory=list)
    transcript: List[Dict[str, str]] = Field(default_factory=list)


# ----------------------------
# Per-turn analysis
# ----------------------------
class Mention(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: MenuItem
    strength: float
    span_start: Optional[int] = None
    span_end: Optional[int] = None


class ExtractedItem(BaseModel):
    menu_item_id: str
    name: str
    price: Decimal
    quantity: int = Field(default=1, ge=1)
    strength: float = 1.0
    explicit_quantity: bool = False


class ExtractedFields(BaseModel):
    table_number: Optional[int] = None
    party_size: Optional[int] = None
    items: List[ExtractedItem] = Field(default_factory=list)


class IntentAnalysis(BaseModel):
    intent: Intent = Intent.GENERAL
    extracted: ExtractedFields = Field(default_factory=ExtractedFields)
    suggested_actions: List[ActionType] = Field(default_factory=list)

    def suggest(self, action: ActionType) -> None:
        if action not in self.suggested_actions:
            self.suggested_actions.append(action)


# ----------------------------
# Actions
# ----------------------------
class DueAction(BaseModel):
    type: ActionType
    payload: Dict[str, Any] = Field(default_factory=dict)


class OrderPersistenceError(Exception):
    """The persistence collaborator failed while recording an order."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ActionResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    action: DueAction
    ok: bool = True
    order_id: Optional[Any] = None
    error: Optional[OrderPersistenceError] = None


class OrderSubmission(BaseModel):
    """What the persistence collaborator receives for create_order."""

    conversation_key: str
    platform: str
    table_number: Optional[int] = None
    party_size: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    total: Decimal
    special_instructions: str = ""
    items: List[OrderLineItem] = Field(default_factory=list)


class TurnResult(BaseModel):
    conversation_key: str
    intent: Intent
    extracted: ExtractedFields
    order: Order
    stage: Stage
    due_actions: List[DueAction] = Field(default_factory=list)
    reply_context: Dict[str, Any] = Field(default_factory=dict)

    def has_action(self, action_type: ActionType) -> bool:
        return any(a.type == action_type for a in self.due_actions)
