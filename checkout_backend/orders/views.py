import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, EmailStr, Field

from checkout_backend.dependencies import get_cart_mapper, get_commerce_client
from checkout_backend.utils.rate_limit import optional_rate_limit
from . import repository
from .cart_mapper import CartMapper, minor_to_major
from .commerce_client import CommerceOrderClient
from .models import CheckoutCart
from .service import create_cod_order

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


class CodOrderRequest(BaseModel):
    checkout: Dict[str, Any] = Field(validation_alias=AliasChoices("checkout", "checkoutData"))
    note: str = ""


class StoreOrderItem(BaseModel):
    product_title: str
    variant: Optional[str] = None
    quantity: int = Field(ge=1)
    price: int = Field(ge=0)  # montant de la ligne (qty x unitaire), unités mineures


class StoreOrderCustomer(BaseModel):
    name: str = ""
    email: EmailStr
    phone: str = ""
    address: str = ""
    state: str = ""
    postal_code: str = ""


class StoreOrderRequest(BaseModel):
    order_id: str = Field(min_length=1)
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: str = Field(min_length=1)
    payment_method: Literal["COD", "Online"]
    payment_status: Literal["Paid", "Pending", "Failed"]
    subtotal: int = Field(ge=0)
    discount: int = Field(default=0, ge=0)
    total_amount: int = Field(ge=0)
    delivery_status: str = "pending"
    order_progress: int = 1
    customer: StoreOrderCustomer
    items: List[StoreOrderItem] = Field(default_factory=list)

# module checkout_backend.orders.views
@router.post("/cod", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def create_cod(
    body: CodOrderRequest,
    mapper: CartMapper = Depends(get_cart_mapper),
    commerce: CommerceOrderClient = Depends(get_commerce_client),
):
    """
    Commande « paiement à la livraison »: aucune signature, statut financier 'pending'.
    - Entrée JSON: {"checkout": {...}, "note"?: "..."}
    - Réponse: {"success": true, "commerce_order_id", "order_reference"}
    """
    cart = CheckoutCart.from_checkout_data(body.checkout)
    order = create_cod_order(cart, mapper=mapper, commerce=commerce, note=body.note)
    return {"success": True, "commerce_order_id": order.order_id, "order_reference": order.order_number}

@router.post("/store", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def store_order(body: StoreOrderRequest):
    """
    Écrit une commande et ses lignes dans le store Supabase.
    - Montants reçus en unités mineures, stockés en unités majeures (2 décimales)
    - Erreurs distinctes: order_insert_failed (rien d'écrit) / order_items_insert_failed (partiel)
    """
    row = {
        "order_id": body.order_id,
        "customer_name": body.customer.name,
        "email": body.customer.email,
        "phone": body.customer.phone,
        "address": body.customer.address,
        "state": body.customer.state,
        "postal_code": body.customer.postal_code,
        "payment_method": body.payment_method,
        "payment_status": body.payment_status,
        "razorpay_order_id": body.razorpay_order_id,
        "razorpay_payment_id": body.razorpay_payment_id,
        "subtotal": minor_to_major(body.subtotal),
        "discount": minor_to_major(body.discount),
        "total_amount": minor_to_major(body.total_amount),
        "delivery_status": body.delivery_status,
        "order_progress": body.order_progress,
    }
    items = [
        {
            "product_title": it.product_title,
            "variant": it.variant,
            "quantity": it.quantity,
            "price": minor_to_major(it.price),
        }
        for it in body.items
    ]
    stored = repository.store_order(row, items)
    logger.info("orders.store ok order_id=%s items=%s", body.order_id, stored.get("items"))
    return {"ok": True, **stored}
