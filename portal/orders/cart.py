"""
In-memory cart used to build an order before it is submitted.

Nothing here touches the database: the cart lives for one request/session and
is turned into an Order by orders.services.submit_order.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from .exceptions import CartError
from .pricing import DEFAULT_TAX_RATE, Totals, calculate_totals, line_subtotal, resolve_unit_price, to_quantity


@dataclass
class CartItem:
    product_id: Any
    item_code: str
    description: str
    unit_price: Decimal
    quantity: int = 1
    total_price: Decimal = field(default=Decimal('0.00'))
    product: Optional[Any] = field(default=None, repr=False, compare=False)

    def recompute(self):
        self.total_price = line_subtotal(self.unit_price, self.quantity)
        return self.total_price


class Cart:
    """Product selections keyed by product id, in insertion order"""

    def __init__(self, tax_rate=DEFAULT_TAX_RATE):
        self.tax_rate = tax_rate
        self._items = OrderedDict()
        self.totals = calculate_totals([], tax_rate)

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items.values())

    def __contains__(self, product_id):
        return product_id in self._items

    @property
    def items(self):
        return list(self._items.values())

    @property
    def is_empty(self):
        return not self._items

    def get(self, product_id):
        return self._items.get(product_id)

    def _line(self, product_id):
        try:
            return self._items[product_id]
        except KeyError:
            raise CartError(f'Product {product_id} is not in the cart.')

    def _recompute_totals(self):
        self.totals = calculate_totals(self._items.values(), self.tax_rate)
        return self.totals

    def add(self, product, price_override=None):
        """
        Add one unit of a product.

        A product already in the cart gets its quantity bumped; a new line is
        priced at price_override when given, else at the product's base price.
        """
        line = self._items.get(product.id)
        if line is not None:
            line.quantity += 1
        else:
            unit_price = resolve_unit_price(product.base_unit_price, price_override)
            line = CartItem(
                product_id=product.id,
                item_code=product.item_number,
                description=product.description or product.name,
                unit_price=unit_price,
                quantity=1,
                product=product,
            )
            self._items[product.id] = line
        line.recompute()
        self._recompute_totals()
        return line

    def increment(self, product_id):
        line = self._line(product_id)
        line.quantity += 1
        line.recompute()
        self._recompute_totals()
        return line

    def decrement(self, product_id):
        """Take one unit off a line; a line never drops below one unit"""
        line = self._line(product_id)
        if line.quantity > 1:
            line.quantity -= 1
            line.recompute()
            self._recompute_totals()
        return line

    def set_quantity(self, product_id, quantity):
        line = self._line(product_id)
        quantity = to_quantity(quantity)
        if quantity < 1:
            raise CartError('Quantity must be at least 1; remove the line instead.')
        line.quantity = quantity
        line.recompute()
        self._recompute_totals()
        return line

    def remove(self, product_id):
        """Delete a line whatever its quantity"""
        line = self._line(product_id)
        del self._items[product_id]
        self._recompute_totals()
        return line

    def clear(self):
        self._items.clear()
        self._recompute_totals()

    def summary(self) -> Totals:
        return self.totals
