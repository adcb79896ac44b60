"""
Modèles 'orders': panier de checkout (entrée client), requête de création de commande
canonique et commande renvoyée par la plateforme commerce.
Les montants sont toujours des entiers en unités mineures (paise/centimes).
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class FinancialStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class CartLineItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Référence opaque: "123", 123 ou "gid://shopify/ProductVariant/123"
    variant_reference: str = Field(
        default="", validation_alias=AliasChoices("variant_reference", "variant_id", "variant", "id")
    )
    quantity: int = Field(default=1, ge=1, validation_alias=AliasChoices("quantity", "qty"))
    title: str = Field(default="", validation_alias=AliasChoices("title", "product_title"))
    unit_price: Optional[int] = Field(default=None, ge=0, validation_alias=AliasChoices("unit_price", "price"))

    @field_validator("variant_reference", mode="before")
    @classmethod
    def _stringify_reference(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, dict):
            v = v.get("id") or ""
        return str(v).strip()


class Customer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "fullName", "full_name"))
    email: Optional[str] = None
    phone: Optional[str] = None


class ShippingAddress(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: Optional[str] = Field(default=None, validation_alias=AliasChoices("address", "address1", "street"))
    city: Optional[str] = None
    state: Optional[str] = Field(default=None, validation_alias=AliasChoices("state", "province"))
    postal_code: Optional[str] = Field(default=None, validation_alias=AliasChoices("postal_code", "zip", "postal"))
    country: Optional[str] = None


class CheckoutCart(BaseModel):
    """
    Forme canonique du checkout envoyé par le storefront:
    {"items": [...], "customer": {...}, "shipping": {...}, "total_amount": <paise>}
    """
    model_config = ConfigDict(populate_by_name=True)

    items: List[CartLineItem] = Field(default_factory=list)
    customer: Customer = Field(default_factory=Customer)
    shipping: ShippingAddress = Field(default_factory=ShippingAddress)
    total_amount: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("total_amount", "total_price", "amount")
    )

    @classmethod
    def from_checkout_data(cls, data: Dict[str, Any]) -> "CheckoutCart":
        """
        Normalise les variantes de payload historiques du storefront:
        - items à la racine ou sous cart.items (format /cart.js)
        - nom/email/téléphone à plat ou sous customer
        - adresse sous shipping ou à plat (street/city/state/postal/country)
        """
        data = dict(data or {})
        cart = data.get("cart") or {}
        items = data.get("items")
        if items is None and isinstance(cart, dict):
            items = cart.get("items")
        total = data.get("total_amount")
        if total is None and isinstance(cart, dict):
            total = cart.get("total_price") or cart.get("items_subtotal_price")

        customer = data.get("customer") or {
            "name": data.get("name") or data.get("fullName"),
            "email": data.get("email"),
            "phone": data.get("phone"),
        }
        shipping = data.get("shipping") or {
            "address": data.get("street") or data.get("address"),
            "city": data.get("city"),
            "state": data.get("state"),
            "postal_code": data.get("postal") or data.get("postal_code"),
            "country": data.get("country"),
        }
        return cls.model_validate({
            "items": items or [],
            "customer": customer,
            "shipping": shipping,
            "total_amount": total,
        })


class CommerceOrderRequest(BaseModel):
    """Requête de création de commande, indépendante du format JSON de la plateforme."""
    model_config = ConfigDict(frozen=True)

    email: str
    line_items: List[Dict[str, Any]]
    customer: Dict[str, str]
    shipping_address: Dict[str, str]
    billing_address: Dict[str, str]
    financial_status: FinancialStatus
    note_attributes: Dict[str, str]
    tags: List[str]
    gateway: str
    payment_id: Optional[str] = None
    total_amount: Optional[int] = None
    currency: str = "INR"
    note: str = ""


class CommerceOrder(BaseModel):
    order_id: str
    order_number: Optional[str] = None
    financial_status: FinancialStatus
    line_items: List[Dict[str, Any]] = Field(default_factory=list)
    note_attributes: Dict[str, str] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    raw: Dict[str, Any] = Field(default_factory=dict, exclude=True)
