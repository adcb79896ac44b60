"""
Pipeline de vérification: signature -> statut passerelle -> mapping panier -> commande plateforme.

Machine à états à un seul passage par invocation (un panier, un paiement):
    Created -> SignatureChecked -> Mapped -> OrderSubmitted -> Completed
avec Failed{stage, reason} terminal atteignable depuis chaque état non terminal.
Aucun état partagé entre invocations: le pipeline ne garde que des références
vers la configuration et les clients, tous en lecture seule.
"""
from enum import Enum
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from checkout_backend.config import CheckoutSettings
from checkout_backend.errors import (
    CheckoutError,
    ConfigurationError,
    GatewayUnavailableError,
    MappingError,
    MissingFieldsError,
    OrderItemsInsertError,
    PaymentNotSuccessfulError,
    PersistenceError,
    PlatformRejectedError,
    PlatformUnavailableError,
    SignatureMismatchError,
)
from checkout_backend.orders.cart_mapper import CartMapper, PaymentMeta
from checkout_backend.orders.commerce_client import CommerceOrderClient
from checkout_backend.orders.models import CheckoutCart, CommerceOrder, FinancialStatus
from . import signature
from .gateway_client import GatewayOrderClient
from .models import PaymentConfirmation, PaymentStatus

logger = logging.getLogger(__name__)

SUCCESSFUL_PAYMENT_STATUSES = {PaymentStatus.AUTHORIZED, PaymentStatus.CAPTURED}

PersistFn = Callable[[CommerceOrder, CheckoutCart, PaymentMeta], Dict[str, Any]]


class PipelineState(str, Enum):
    CREATED = "created"
    SIGNATURE_CHECKED = "signature_checked"
    MAPPED = "mapped"
    ORDER_SUBMITTED = "order_submitted"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineFailure(BaseModel):
    stage: PipelineState
    reason: str
    error: str
    message: str
    http_status: int
    intent_id: Optional[str] = None
    payment_id: Optional[str] = None
    # Instantané pour réconciliation manuelle (uniquement après paiement confirmé)
    order_request: Optional[Dict[str, Any]] = None
    upstream_status: Optional[int] = None
    upstream_body: Any = None


class PipelineResult(BaseModel):
    state: PipelineState = PipelineState.CREATED
    history: List[PipelineState] = Field(default_factory=lambda: [PipelineState.CREATED])
    order: Optional[CommerceOrder] = None
    failure: Optional[PipelineFailure] = None
    degraded_confidence: bool = False
    persisted: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.state == PipelineState.COMPLETED

    @property
    def commerce_order_id(self) -> Optional[str]:
        return self.order.order_id if self.order else None

    @property
    def order_reference(self) -> Optional[str]:
        return self.order.order_number if self.order else None

    @property
    def http_status(self) -> int:
        return self.failure.http_status if self.failure else 200

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)

    def to_response(self) -> Dict[str, Any]:
        if self.failure:
            f = self.failure
            payload: Dict[str, Any] = {
                "success": False,
                "state": PipelineState.FAILED.value,
                "stage": f.stage.value,
                "reason": f.reason,
                "error": f.error,
                "detail": f.message,
            }
            if f.stage == PipelineState.ORDER_SUBMITTED:
                payload["reconciliation"] = {
                    "intent_id": f.intent_id,
                    "payment_id": f.payment_id,
                    "order_request": f.order_request,
                    "upstream_status": f.upstream_status,
                    "details": f.upstream_body,
                }
            return payload
        return {
            "success": True,
            "state": self.state.value,
            "commerce_order_id": self.commerce_order_id,
            "order_reference": self.order_reference,
            "degraded_confidence": self.degraded_confidence,
            "persisted": self.persisted,
        }


class VerificationPipeline:
    def __init__(
        self,
        settings: CheckoutSettings,
        gateway: GatewayOrderClient,
        mapper: CartMapper,
        commerce: CommerceOrderClient,
        persist: Optional[PersistFn] = None,
        verifier: Callable[[str, str, str, str], bool] = signature.verify,
    ):
        self.settings = settings
        self.gateway = gateway
        self.mapper = mapper
        self.commerce = commerce
        self.persist = persist
        self.verifier = verifier

    def _fail(
        self,
        result: PipelineResult,
        stage: PipelineState,
        exc: CheckoutError,
        confirmation: PaymentConfirmation,
        order_request: Optional[Dict[str, Any]] = None,
    ) -> PipelineResult:
        result.failure = PipelineFailure(
            stage=stage,
            reason=exc.code,
            error=type(exc).__name__,
            message=exc.message,
            http_status=exc.http_status,
            intent_id=confirmation.intent_id,
            payment_id=confirmation.payment_id,
            order_request=order_request,
            upstream_status=getattr(exc, "status_code", None),
            upstream_body=getattr(exc, "body", None),
        )
        result.advance(PipelineState.FAILED)
        return result

    def _check_payment_status(self, confirmation: PaymentConfirmation, result: PipelineResult) -> None:
        """
        Double vérification du statut côté passerelle.
        - captured / authorized: on continue
        - tout autre statut lu (failed, refunded, inconnu...): PaymentNotSuccessfulError
        - passerelle injoignable: on continue avec degraded_confidence
        """
        try:
            status = self.gateway.fetch_status(confirmation.intent_id, confirmation.payment_id)
        except GatewayUnavailableError as e:
            result.degraded_confidence = True
            logger.warning(
                "payments.pipeline degraded confidence: status unavailable intent_id=%s payment_id=%s (%s)",
                confirmation.intent_id, confirmation.payment_id, e.code,
            )
            return
        if status not in SUCCESSFUL_PAYMENT_STATUSES:
            raise PaymentNotSuccessfulError(f"Payment status is not successful: {status.value}")

    def run(
        self,
        confirmation: PaymentConfirmation,
        cart: Optional[CheckoutCart],
        financial_status: FinancialStatus = FinancialStatus.PAID,
    ) -> PipelineResult:
        result = PipelineResult()

        # Created: champs requis
        missing = [
            name for name, value in (
                ("intent_id", confirmation.intent_id),
                ("payment_id", confirmation.payment_id),
                ("signature", confirmation.signature),
            ) if not value
        ]
        if cart is None or not cart.items:
            missing.append("checkout.items")
        if missing:
            exc = MissingFieldsError(f"Missing verification parameters: {', '.join(missing)}")
            return self._fail(result, PipelineState.CREATED, exc, confirmation)

        # Secret passerelle absent: aucune signature n'est vérifiable (503)
        if not self.settings.gateway_configured:
            logger.error("payments.pipeline gateway credentials missing, cannot verify intent_id=%s", confirmation.intent_id)
            exc = ConfigurationError("Razorpay credentials are not configured")
            return self._fail(result, PipelineState.CREATED, exc, confirmation)

        # SignatureChecked
        secret = self.settings.gateway_key_secret.get_secret_value()
        if not self.verifier(confirmation.intent_id, confirmation.payment_id, confirmation.signature, secret):
            logger.warning(
                "payments.pipeline signature mismatch intent_id=%s payment_id=%s",
                confirmation.intent_id, confirmation.payment_id,
            )
            exc = SignatureMismatchError("Payment verification failed - signature mismatch")
            return self._fail(result, PipelineState.SIGNATURE_CHECKED, exc, confirmation)
        try:
            self._check_payment_status(confirmation, result)
        except PaymentNotSuccessfulError as e:
            logger.warning("payments.pipeline payment not successful intent_id=%s: %s", confirmation.intent_id, e.message)
            return self._fail(result, PipelineState.SIGNATURE_CHECKED, e, confirmation)
        result.advance(PipelineState.SIGNATURE_CHECKED)

        # Mapped
        meta = PaymentMeta(
            gateway=self.settings.gateway_name,
            intent_id=confirmation.intent_id,
            payment_id=confirmation.payment_id,
        )
        try:
            request = self.mapper.map_to_order_request(cart, meta, financial_status)
        except MappingError as e:
            logger.info("payments.pipeline mapping failed intent_id=%s: %s", confirmation.intent_id, e.code)
            return self._fail(result, PipelineState.MAPPED, e, confirmation)
        result.advance(PipelineState.MAPPED)

        # OrderSubmitted: le paiement est acquis, toute erreur ici doit rester réconciliable
        snapshot = request.model_dump(mode="json")
        try:
            order = self.commerce.create_order(request)
        except (PlatformRejectedError, PlatformUnavailableError, ConfigurationError) as e:
            logger.error(
                "payments.pipeline PAID BUT ORDER NOT CREATED intent_id=%s payment_id=%s error=%s request=%s",
                confirmation.intent_id, confirmation.payment_id, e.code, snapshot,
            )
            return self._fail(result, PipelineState.ORDER_SUBMITTED, e, confirmation, order_request=snapshot)
        result.order = order
        result.advance(PipelineState.ORDER_SUBMITTED)

        if self.persist is not None:
            result.persisted = self._persist(order, cart, meta)

        result.advance(PipelineState.COMPLETED)
        logger.info(
            "payments.pipeline completed order_id=%s intent_id=%s degraded=%s",
            order.order_id, confirmation.intent_id, result.degraded_confidence,
        )
        return result

    def _persist(self, order: CommerceOrder, cart: CheckoutCart, meta: PaymentMeta) -> str:
        """La commande plateforme existe déjà: un échec de persistance est signalé, jamais propagé."""
        try:
            self.persist(order, cart, meta)
            return "ok"
        except OrderItemsInsertError:
            logger.error("payments.pipeline order items not persisted order_id=%s", order.order_id)
            return "items_failed"
        except PersistenceError:
            logger.error("payments.pipeline order not persisted order_id=%s", order.order_id)
            return "order_failed"
