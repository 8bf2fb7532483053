# rentals/services/quotation_service.py
from decimal import Decimal
from typing import Any, Dict, List

from rentals.domain.schemas import QuoteItemIn
from rentals.repos.base import ProductRepository
from rentals.services.pricing import price, rental_days
from rentals.utils.settings import TAX_RATE, DELIVERY_FEE, FREE_DELIVERY_THRESHOLD
from rentals.utils.logging import get_logger

logger = get_logger(__name__)


class QuotationService:
    """
    Quote for a cart before booking:
    -line totals from the pricing engine
    -tax on the subtotal
    -flat delivery fee unless the subtotal is strictly above the threshold
    """

    def __init__(
        self,
        product_repo: ProductRepository,
        tax_rate: Decimal = TAX_RATE,
        delivery_fee: Decimal = DELIVERY_FEE,
        free_delivery_threshold: Decimal = FREE_DELIVERY_THRESHOLD,
    ):
        self.product_repo = product_repo
        self.tax_rate = tax_rate
        self.delivery_fee = delivery_fee
        self.free_delivery_threshold = free_delivery_threshold

    def quote(self, items: List[QuoteItemIn]) -> Dict[str, Any]:
        lines = []
        for item in items:
            product = self.product_repo.get_product(item.product)

            #unknown product prices at 0 instead of failing the whole quote
            if product is None:
                logger.warning(f"Quotation: product {item.product} not found, pricing at 0")
                line_total = Decimal("0")
                name = None
            else:
                line_total = price(product, item.start_date, item.end_date, item.quantity)
                name = product.name

            lines.append(
                {
                    "product": item.product,
                    "product_name": name,
                    "quantity": item.quantity,
                    "start_date": item.start_date,
                    "end_date": item.end_date,
                    "days": rental_days(item.start_date, item.end_date),
                    "line_total": line_total,
                }
            )

        subtotal = sum((line["line_total"] for line in lines), Decimal("0"))
        tax = subtotal * self.tax_rate
        delivery_fee = Decimal("0") if subtotal > self.free_delivery_threshold else self.delivery_fee

        return {
            "items": lines,
            "subtotal": subtotal,
            "tax": tax,
            "delivery_fee": delivery_fee,
            "total": subtotal + tax + delivery_fee,
        }
