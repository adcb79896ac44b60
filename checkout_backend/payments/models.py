"""
Modèles 'payments': intention de paiement côté passerelle et confirmation client.
"""
from enum import Enum
from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PaymentStatus(str, Enum):
    CREATED = "created"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    FAILED = "failed"
    REFUNDED = "refunded"
    # statut lisible mais absent de la table: jamais considéré comme un succès
    UNKNOWN = "unknown"


# Statuts Razorpay (orders + payments) -> statut interne
GATEWAY_STATUS_MAP: Dict[str, PaymentStatus] = {
    "created": PaymentStatus.CREATED,
    "attempted": PaymentStatus.CREATED,
    "authorized": PaymentStatus.AUTHORIZED,
    "captured": PaymentStatus.CAPTURED,
    "paid": PaymentStatus.CAPTURED,
    "completed": PaymentStatus.CAPTURED,
    "refunded": PaymentStatus.REFUNDED,
    "failed": PaymentStatus.FAILED,
}


class PaymentIntent(BaseModel):
    """
    Commande Razorpay (intent). Immuable: seul le statut côté passerelle évolue,
    et on ne le relit que via GatewayOrderClient.fetch_status.
    """
    model_config = ConfigDict(frozen=True)

    intent_id: str
    amount: int
    currency: str
    receipt: str
    status: PaymentStatus = PaymentStatus.CREATED


class PaymentConfirmation(BaseModel):
    """
    Identifiants renvoyés par le checkout Razorpay côté navigateur.
    Champs laissés optionnels: l'absence est détectée par le pipeline (état Created).
    """
    model_config = ConfigDict(populate_by_name=True)

    intent_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("intent_id", "razorpay_order_id", "orderId")
    )
    payment_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("payment_id", "razorpay_payment_id", "paymentId")
    )
    signature: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("signature", "razorpay_signature")
    )
