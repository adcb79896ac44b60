"""Backend checkout: Razorpay (paiement) -> Shopify (commande) -> Supabase (store optionnel)."""

__version__ = "1.0.0"
