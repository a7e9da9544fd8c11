# chefbot/ordering/cart.py
"""
Order aggregator: the only code path that mutates an Order.

Totals are always recomputed from the lines after a mutation, so
Order.total == sum(line.price * line.quantity) holds after every call.
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple

from .domain import MenuItem, Order, OrderLineItem, to_money


def _recalc_total(order: Order) -> None:
    total = Decimal("0.00")
    for line in order.items:
        total += line.price * line.quantity
    order.total = to_money(total)


def apply_mention(order: Order, item: MenuItem, quantity: int = 1) -> Order:
    """
    Add `quantity` of `item`. A repeated item bumps the existing line
    instead of adding a second one; new items go to the end.
    """
    qty = max(1, int(quantity or 1))
    line = order.find_line(item.id)
    if line is not None:
        line.quantity += qty
    else:
        order.items.append(
            OrderLineItem(menu_item_id=item.id, name=item.name, price=item.price, quantity=qty)
        )
    _recalc_total(order)
    return order


def remove_mention(order: Order, menu_item_id: str, quantity: Optional[int] = None) -> Order:
    """
    Take `quantity` off a line, or the whole line when quantity is None.
    A quantity below 1 leaves the order untouched.
    """
    line = order.find_line(str(menu_item_id))
    if line is None:
        return order
    if quantity is not None and int(quantity) < 1:
        return order

    remaining = 0 if quantity is None else line.quantity - int(quantity)
    if remaining <= 0:
        order.items = [x for x in order.items if x.menu_item_id != line.menu_item_id]
    else:
        line.quantity = remaining
    _recalc_total(order)
    return order


def build_summary(order: Order, currency_symbol: str = "R$") -> Tuple[str, Decimal]:
    if order.is_empty():
        return ("Pedido vazio", Decimal("0.00"))

    lines: List[str] = []
    for i, line in enumerate(order.items, start=1):
        lines.append(f"{i}. {line.quantity}x {line.name} = {currency_symbol} {line.line_total:.2f}")

    return ("Pedido atual:\n" + "\n".join(lines) + f"\n\nTotal: {currency_symbol} {order.total:.2f}", order.total)
