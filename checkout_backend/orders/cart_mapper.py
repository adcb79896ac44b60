"""
Logique panier pure (pas de réseau, pas de DB): CheckoutCart -> CommerceOrderRequest.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel

from checkout_backend.config import CheckoutSettings
from checkout_backend.errors import EmptyCartError, InvalidAddressError
from .models import CartLineItem, CheckoutCart, CommerceOrderRequest, FinancialStatus

logger = logging.getLogger(__name__)

# 2 décimales: unique devise supportée (INR / paise)
MINOR_UNIT_EXPONENT = 2
MAX_MINOR_AMOUNT = 10_000_000
_TWO_PLACES = Decimal("0.01")
_GID_RE = re.compile(r"^gid://[^/]+/ProductVariant/(\d+)$")


class PaymentMeta(BaseModel):
    gateway: str
    intent_id: Optional[str] = None
    payment_id: Optional[str] = None


# module checkout_backend.orders.cart_mapper
def minor_to_major(amount: int) -> str:
    """
    Convertit un montant en unités mineures en chaîne d'unités majeures à 2 décimales
    (12345 -> "123.45"). Arrondi ROUND_HALF_UP, jamais de float.
    """
    value = Decimal(int(amount)).scaleb(-MINOR_UNIT_EXPONENT)
    return str(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))

def major_to_minor(amount: str) -> int:
    """Inverse de minor_to_major ("123.45" -> 12345). ValueError si non numérique."""
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount {amount!r}") from e
    return int(value.scaleb(MINOR_UNIT_EXPONENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def parse_variant_id(reference: str, numeric: bool = True) -> Optional[Union[int, str]]:
    """
    Convertit une référence de variante au type attendu par la plateforme.
    - numeric: "123" et "gid://shopify/ProductVariant/123" -> 123, None sinon
    - opaque: référence non vide transmise telle quelle
    """
    ref = (reference or "").strip()
    if not ref:
        return None
    if not numeric:
        return ref
    match = _GID_RE.match(ref)
    if match:
        ref = match.group(1)
    if not (ref.isascii() and ref.isdigit()):
        return None
    value = int(ref)
    return value if value > 0 else None

def split_name(name: Optional[str]) -> Tuple[str, str]:
    """Sépare prénom / nom sur le premier espace; ("", "") si absent."""
    parts = (name or "").strip().split(None, 1)
    if not parts:
        return "", ""
    first = parts[0]
    last = parts[1].strip() if len(parts) > 1 else ""
    return first, last


class CartMapper:
    def __init__(self, settings: CheckoutSettings):
        self.settings = settings

    def _line_items(self, items: List[CartLineItem]) -> List[Dict[str, Any]]:
        numeric = self.settings.variant_id_format != "opaque"
        line_items: List[Dict[str, Any]] = []
        for item in items:
            variant_id = parse_variant_id(item.variant_reference, numeric=numeric)
            if variant_id is None:
                logger.info("orders.mapper dropping line item variant=%r", item.variant_reference)
                continue
            line_items.append({"variant_id": variant_id, "quantity": item.quantity})
        return line_items

    def _address(self, cart: CheckoutCart, first: str, last: str) -> Dict[str, str]:
        shipping = cart.shipping
        country = (shipping.country or "").strip() or self.settings.home_country.strip()
        if not country:
            raise InvalidAddressError("Shipping country is required and no home country is configured")
        return {
            "first_name": first,
            "last_name": last,
            "address1": shipping.address or "",
            "city": shipping.city or "",
            "province": shipping.state or "",
            "zip": shipping.postal_code or "",
            "country": country,
            "phone": cart.customer.phone or "",
        }

    def map_to_order_request(
        self,
        cart: CheckoutCart,
        payment_meta: PaymentMeta,
        financial_status: FinancialStatus,
        note: str = "",
    ) -> CommerceOrderRequest:
        """
        Construit la requête de commande canonique.
        - Lignes dont la variante n'est pas convertible: ignorées; EmptyCartError si plus aucune.
        - Nom absent: prénom/nom vides (jamais None).
        - Adresse: champs absents -> "", pays absent -> HOME_COUNTRY.
        - note_attributes: passerelle + intent + paiement (traçabilité pour la réconciliation).
        """
        line_items = self._line_items(cart.items)
        if not line_items:
            raise EmptyCartError("No valid line items in cart")

        first, last = split_name(cart.customer.name)
        address = self._address(cart, first, last)
        email = (cart.customer.email or "").strip()

        note_attributes: Dict[str, str] = {"payment_gateway": payment_meta.gateway}
        if payment_meta.intent_id:
            note_attributes["gateway_intent_id"] = payment_meta.intent_id
        if payment_meta.payment_id:
            note_attributes["gateway_payment_id"] = payment_meta.payment_id

        tags = list(dict.fromkeys([*self.settings.order_tags, payment_meta.gateway]))

        return CommerceOrderRequest(
            email=email,
            line_items=line_items,
            customer={"first_name": first, "last_name": last, "email": email},
            shipping_address=address,
            billing_address=dict(address),
            financial_status=financial_status,
            note_attributes=note_attributes,
            tags=tags,
            gateway=payment_meta.gateway,
            payment_id=payment_meta.payment_id,
            total_amount=cart.total_amount,
            currency=self.settings.currency,
            note=note,
        )
