"""
Module 'orders' (feature-first): point d'entrée public.
Réunit modèles panier/commande, mapping, client Shopify et store Supabase.
"""

from .models import CartLineItem, CheckoutCart, CommerceOrder, CommerceOrderRequest, Customer, FinancialStatus, ShippingAddress
from .cart_mapper import CartMapper, PaymentMeta, major_to_minor, minor_to_major, parse_variant_id, split_name
from .commerce_client import CommerceOrderClient, to_platform_payload

__all__ = [
    # models
    "CartLineItem",
    "CheckoutCart",
    "CommerceOrder",
    "CommerceOrderRequest",
    "Customer",
    "FinancialStatus",
    "ShippingAddress",
    # mapper
    "CartMapper",
    "PaymentMeta",
    "major_to_minor",
    "minor_to_major",
    "parse_variant_id",
    "split_name",
    # commerce
    "CommerceOrderClient",
    "to_platform_payload",
]
