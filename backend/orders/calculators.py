"""
Order financial calculator.

Two steps, both pure with respect to order state:

1. snapshot_line_items() resolves requested menu items against the live
   catalog once and copies name and price into PricedLine values.
2. calculate() turns priced lines, an optional offer and an optional loyalty
   discount into the five stored money fields.

Usage:
    calculator = OrderCalculator()
    lines = calculator.snapshot_line_items(request_items)
    breakdown = calculator.calculate(lines, offer=offer, audience="all")

Rounding (banker's, currency minor unit) is applied only to the final
per-field outputs. The total is derived from the rounded fields so
total == subtotal + tax + delivery_fee - discount holds exactly.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from core_backend.config import engine_settings
from menu.services import MenuCatalogService
from offers.models import Offer
from offers.services import OfferValidator
from payments.money import quantize

from .exceptions import InvalidLineItem


@dataclass
class PricedLine:
    """A requested line with its catalog snapshot taken."""
    menu_item: Any
    item_name: str
    quantity: int
    unit_price: Decimal
    special_instructions: str = ""

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class PriceBreakdown:
    subtotal: Decimal
    tax: Decimal
    delivery_fee: Decimal
    discount: Decimal
    total: Decimal
    offer_discount: Decimal = Decimal("0.00")
    loyalty_discount: Decimal = Decimal("0.00")
    notes: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, str]:
        return {
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "delivery_fee": str(self.delivery_fee),
            "discount": str(self.discount),
            "total": str(self.total),
        }


class OrderCalculator:
    """
    Prices an order under the configured fee and tax policy.

    Policy values default to engine_settings and can be overridden per
    instance, which is how tests pin a policy without touching settings.
    """

    def __init__(
        self,
        tax_rate: Optional[Decimal] = None,
        delivery_fee: Optional[Decimal] = None,
        free_delivery_threshold: Optional[Decimal] = None,
        currency: Optional[str] = None,
    ):
        self.tax_rate = engine_settings.TAX_RATE if tax_rate is None else Decimal(tax_rate)
        self.flat_delivery_fee = (
            engine_settings.DELIVERY_FEE if delivery_fee is None else Decimal(delivery_fee)
        )
        self.free_delivery_threshold = (
            engine_settings.FREE_DELIVERY_THRESHOLD
            if free_delivery_threshold is None
            else Decimal(free_delivery_threshold)
        )
        self.currency = currency or engine_settings.CURRENCY

    # --- Step 1: catalog snapshot ---

    @staticmethod
    def snapshot_line_items(items: Iterable[Dict[str, Any]]) -> List[PricedLine]:
        """
        Resolves request items ({menu_item_id, quantity, special_instructions})
        against the catalog. Raises InvalidLineItem on the first bad line.
        """
        items = list(items)
        if not items:
            raise InvalidLineItem(
                "An order needs at least one line item",
                details={"items": "This list may not be empty."},
            )

        catalog = MenuCatalogService.get_items(item.get("menu_item_id") for item in items)
        lines = []

        for index, item in enumerate(items):
            menu_item_id = item.get("menu_item_id")
            quantity = item.get("quantity")

            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise InvalidLineItem(
                    "Quantity must be a positive whole number",
                    details={"index": index, "menu_item_id": str(menu_item_id), "quantity": str(quantity)},
                )

            menu_item = catalog.get(MenuCatalogService.normalize_id(menu_item_id))
            if menu_item is None:
                raise InvalidLineItem(
                    f"Menu item {menu_item_id} does not exist",
                    details={"index": index, "menu_item_id": str(menu_item_id)},
                )
            if not menu_item.is_available:
                raise InvalidLineItem(
                    f"{menu_item.name} is currently unavailable",
                    details={"index": index, "menu_item_id": str(menu_item_id)},
                )

            lines.append(
                PricedLine(
                    menu_item=menu_item,
                    item_name=menu_item.name,
                    quantity=quantity,
                    unit_price=menu_item.price,
                    special_instructions=item.get("special_instructions") or "",
                )
            )

        return lines

    # --- Step 2: totals ---

    def calculate_subtotal(self, lines: Iterable[PricedLine]) -> Decimal:
        return sum((line.line_total for line in lines), Decimal("0"))

    def calculate_tax(self, subtotal: Decimal) -> Decimal:
        return subtotal * self.tax_rate

    def calculate_delivery_fee(self, subtotal: Decimal, offer: Optional[Offer] = None) -> Decimal:
        if offer is not None and offer.discount_type == Offer.DiscountType.FREE_DELIVERY:
            return Decimal("0")
        if subtotal >= self.free_delivery_threshold:
            return Decimal("0")
        return self.flat_delivery_fee

    def calculate(
        self,
        lines: Iterable[PricedLine],
        offer: Optional[Offer] = None,
        audience: str = Offer.Audience.ALL,
        loyalty_discount: Decimal = Decimal("0"),
        now=None,
    ) -> PriceBreakdown:
        """
        Prices the lines. When an offer is given it is checked for
        eligibility against the subtotal first; any failure propagates.
        """
        lines = list(lines)
        subtotal = self.calculate_subtotal(lines)
        tax = self.calculate_tax(subtotal)

        offer_discount = Decimal("0")
        if offer is not None:
            OfferValidator.check_eligibility(offer, subtotal, audience, now=now)
            offer_discount = OfferValidator.discount_for(offer, subtotal)

        delivery_fee = self.calculate_delivery_fee(subtotal, offer)

        subtotal_q = quantize(self.currency, subtotal)
        tax_q = quantize(self.currency, tax)
        fee_q = quantize(self.currency, delivery_fee)

        gross = subtotal_q + tax_q + fee_q
        requested_discount = offer_discount + Decimal(loyalty_discount)
        discount_q = quantize(self.currency, min(requested_discount, gross))

        breakdown = PriceBreakdown(
            subtotal=subtotal_q,
            tax=tax_q,
            delivery_fee=fee_q,
            discount=discount_q,
            total=gross - discount_q,
            offer_discount=quantize(self.currency, offer_discount),
            loyalty_discount=quantize(self.currency, loyalty_discount),
        )
        if requested_discount > gross:
            breakdown.notes.append("discount capped at order value")
        return breakdown
