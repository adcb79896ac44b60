"""
Module 'payments' (feature-first): point d'entrée public.
Réunit signature Razorpay, client passerelle et pipeline de vérification.
"""

from .signature import compute_signature, verify
from .models import PaymentConfirmation, PaymentIntent, PaymentStatus
from .gateway_client import GatewayOrderClient
from .pipeline import PipelineFailure, PipelineResult, PipelineState, VerificationPipeline

__all__ = [
    # signature
    "compute_signature",
    "verify",
    # models
    "PaymentConfirmation",
    "PaymentIntent",
    "PaymentStatus",
    # gateway
    "GatewayOrderClient",
    # pipeline
    "PipelineFailure",
    "PipelineResult",
    "PipelineState",
    "VerificationPipeline",
]
