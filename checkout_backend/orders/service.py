"""
Cas d'usage 'orders': commande paiement à la livraison et persistance des commandes créées.
"""
from typing import Any, Dict, List, Optional, Tuple
import logging

from . import repository
from .cart_mapper import CartMapper, PaymentMeta, minor_to_major
from .commerce_client import CommerceOrderClient
from .models import CheckoutCart, CommerceOrder, FinancialStatus

logger = logging.getLogger(__name__)

COD_GATEWAY_NAME = "Cash on Delivery"

# module checkout_backend.orders.service
def create_cod_order(
    cart: CheckoutCart,
    *,
    mapper: CartMapper,
    commerce: CommerceOrderClient,
    note: str = "",
) -> CommerceOrder:
    """
    Crée une commande 'pending' sans paiement en ligne.
    Même politique que le pipeline: une seule tentative de création côté plateforme.
    """
    request = mapper.map_to_order_request(
        cart,
        PaymentMeta(gateway=COD_GATEWAY_NAME),
        FinancialStatus.PENDING,
        note=note,
    )
    order = commerce.create_order(request)
    logger.info("orders.cod created order_id=%s items=%s", order.order_id, len(request.line_items))
    return order

def build_store_rows(
    order_id: str,
    cart: CheckoutCart,
    payment_meta: PaymentMeta,
    *,
    payment_method: str,
    payment_status: str,
) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Construit (ligne orders, lignes order_items) à partir du panier.
    - price d'une ligne = prix unitaire x quantité, en unités majeures (chaîne 2 décimales)
    - subtotal = somme des lignes connues; total = total_amount du panier sinon subtotal
    """
    items: List[Dict[str, Any]] = []
    subtotal = 0
    for item in cart.items:
        line_total: Optional[int] = item.unit_price * item.quantity if item.unit_price is not None else None
        if line_total is not None:
            subtotal += line_total
        items.append({
            "product_title": item.title or "Article",
            "variant": item.variant_reference or None,
            "quantity": item.quantity,
            "price": minor_to_major(line_total) if line_total is not None else None,
        })
    total = cart.total_amount if cart.total_amount is not None else subtotal
    discount = max(subtotal - total, 0)

    shipping = cart.shipping
    row = {
        "order_id": order_id,
        "customer_name": cart.customer.name or "",
        "email": cart.customer.email or "",
        "phone": cart.customer.phone or "",
        "address": shipping.address or "",
        "state": shipping.state or "",
        "postal_code": shipping.postal_code or "",
        "payment_method": payment_method,
        "payment_status": payment_status,
        "razorpay_order_id": payment_meta.intent_id,
        "razorpay_payment_id": payment_meta.payment_id,
        "subtotal": minor_to_major(subtotal),
        "discount": minor_to_major(discount),
        "total_amount": minor_to_major(total),
        "delivery_status": "pending",
        "order_progress": 1,
    }
    return row, items

def persist_order(order: CommerceOrder, cart: CheckoutCart, payment_meta: PaymentMeta) -> Dict[str, Any]:
    """Persiste une commande déjà créée sur la plateforme (clé: order_id plateforme)."""
    paid = order.financial_status == FinancialStatus.PAID
    row, items = build_store_rows(
        order.order_id,
        cart,
        payment_meta,
        payment_method="Online" if paid else "COD",
        payment_status="Paid" if paid else "Pending",
    )
    return repository.store_order(row, items)
