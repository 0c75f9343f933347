"""
Order and cart money calculations.

All amounts are Decimal. A line subtotal is unit price x quantity rounded to
cents; the order subtotal is the sum of line subtotals, tax is the subtotal
times the tax rate rounded half-up to cents, and the total is subtotal plus
tax.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .exceptions import PricingError

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
DEFAULT_TAX_RATE = Decimal('0.085')


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total: Decimal = ZERO

    def as_dict(self):
        return {
            'subtotal': self.subtotal,
            'tax_amount': self.tax_amount,
            'total': self.total,
        }


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _to_decimal(value, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise PricingError(f'{field} must be a number, got {value!r}')
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise PricingError(f'{field} must be a number, got {value!r}')
    if number.is_nan() or number.is_infinite():
        raise PricingError(f'{field} must be a finite number, got {value!r}')
    return number


def to_money(value, field: str = 'unit_price') -> Decimal:
    """Validate a non-negative price and return it as a Decimal"""
    amount = _to_decimal(value, field)
    if amount < 0:
        raise PricingError(f'{field} cannot be negative, got {value!r}')
    return amount


def to_quantity(value, field: str = 'quantity') -> int:
    """Validate a non-negative whole quantity"""
    number = _to_decimal(value, field)
    if number != number.to_integral_value():
        raise PricingError(f'{field} must be a whole number, got {value!r}')
    if number < 0:
        raise PricingError(f'{field} cannot be negative, got {value!r}')
    return int(number)


def to_tax_rate(value) -> Decimal:
    return to_money(value, field='tax_rate')


def resolve_unit_price(base_price, override=None) -> Decimal:
    """Client-specific price when one is set, otherwise the catalog base price"""
    if override is not None:
        return to_money(override, field='client_unit_price')
    return to_money(base_price, field='base_unit_price')


def line_subtotal(unit_price, quantity) -> Decimal:
    return quantize_money(to_money(unit_price) * to_quantity(quantity))


def _line_values(line):
    try:
        if isinstance(line, Mapping):
            return line['unit_price'], line['quantity']
        if isinstance(line, (tuple, list)):
            unit_price, quantity = line
            return unit_price, quantity
        return line.unit_price, line.quantity
    except KeyError as e:
        raise PricingError(f'missing {e.args[0]}')
    except ValueError:
        raise PricingError(f'expected (unit_price, quantity), got {line!r}')
    except AttributeError:
        raise PricingError(f'expected unit_price and quantity, got {line!r}')


def calculate_totals(lines, tax_rate=DEFAULT_TAX_RATE) -> Totals:
    """
    Compute subtotal, tax and total for a sequence of priced lines.

    Lines may be (unit_price, quantity) pairs, mappings with unit_price and
    quantity keys, or objects with those attributes. Every line is
    validated before anything is summed.
    """
    rate = to_tax_rate(tax_rate)
    subtotals = []
    for index, line in enumerate(lines):
        try:
            unit_price, quantity = _line_values(line)
            subtotals.append(line_subtotal(unit_price, quantity))
        except PricingError as e:
            raise PricingError(f'Line {index + 1}: {e}')

    subtotal = quantize_money(sum(subtotals, ZERO))
    tax_amount = quantize_money(subtotal * rate)
    return Totals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)
