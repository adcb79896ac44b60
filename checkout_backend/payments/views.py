import logging
import secrets
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from checkout_backend.config import CheckoutSettings
from checkout_backend.dependencies import get_gateway_client, get_pipeline, get_settings
from checkout_backend.orders.cart_mapper import MAX_MINOR_AMOUNT
from checkout_backend.orders.models import CheckoutCart
from checkout_backend.utils.rate_limit import optional_rate_limit
from .gateway_client import GatewayOrderClient
from .models import PaymentConfirmation
from .pipeline import VerificationPipeline

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])


class CreateIntentRequest(BaseModel):
    amount: int = Field(validation_alias=AliasChoices("amount", "amountPaise"), le=MAX_MINOR_AMOUNT)
    receipt: Optional[str] = None
    notes: Optional[Dict[str, str]] = None


class VerifyPaymentRequest(PaymentConfirmation):
    checkout: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("checkout", "checkoutData")
    )


def make_receipt() -> str:
    """Receipt unique par tentative: rcpt_<epoch ms>_<8 hex>."""
    return f"rcpt_{int(time.time() * 1000)}_{secrets.token_hex(4)}"

# module checkout_backend.payments.views
@router.post("/intents", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def create_payment_intent(
    body: CreateIntentRequest,
    gateway: GatewayOrderClient = Depends(get_gateway_client),
    settings: CheckoutSettings = Depends(get_settings),
):
    """
    Crée une commande Razorpay (intent) pour le montant du panier.
    - Entrée JSON: {"amount": <paise>, "receipt"?: "...", "notes"?: {...}}
    - Receipt absent: généré ici (un nouveau par appel, jamais réutilisé)
    - Erreurs: 400 montant invalide, 502 passerelle indisponible (rejouable avec un nouveau receipt)
    """
    receipt = body.receipt or make_receipt()
    intent = gateway.create_intent(body.amount, receipt, body.notes)
    return {"success": True, "intent": intent.model_dump(mode="json"), "key_id": settings.gateway_key_id}

@router.post("/verify", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def verify_payment(body: VerifyPaymentRequest, pipeline: VerificationPipeline = Depends(get_pipeline)):
    """
    Vérifie la signature Razorpay puis crée la commande Shopify correspondante.
    - Entrée JSON: {"intent_id", "payment_id", "signature", "checkout": {...}}
      (alias acceptés: razorpay_order_id, razorpay_payment_id, razorpay_signature, checkoutData)
    - Réponse: {"success": true, "commerce_order_id", "order_reference", ...}
      ou l'état Failed avec le statut HTTP de l'erreur (snapshot de réconciliation si paiement acquis)
    """
    cart = CheckoutCart.from_checkout_data(body.checkout) if body.checkout else None
    confirmation = PaymentConfirmation(
        intent_id=body.intent_id,
        payment_id=body.payment_id,
        signature=body.signature,
    )
    result = pipeline.run(confirmation, cart)
    if not result.completed:
        logger.info(
            "payments.verify failed stage=%s reason=%s intent_id=%s",
            result.failure.stage.value, result.failure.reason, body.intent_id,
        )
    return JSONResponse(status_code=result.http_status, content=result.to_response())
