"""
Adaptateur Razorpay: centralise les appels REST à la passerelle (orders, payments).

Pas de retry interne: un nouvel essai doit être fait par l'appelant (couche HTTP)
avec un nouveau receipt, pour ne jamais créer deux intents pour le même receipt
à l'insu de l'appelant. L'unicité du receipt est de la responsabilité de l'appelant:
ce client ne déduplique rien et transmet chaque appel à la passerelle.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from checkout_backend.config import CheckoutSettings
from checkout_backend.errors import ConfigurationError, GatewayUnavailableError, InvalidAmountError, MissingFieldsError
from .models import GATEWAY_STATUS_MAP, PaymentIntent, PaymentStatus

logger = logging.getLogger(__name__)

# module checkout_backend.payments.gateway_client
class GatewayOrderClient:
    def __init__(self, settings: CheckoutSettings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        # Client HTTP construit à l'instanciation, partagé ensuite entre les requêtes
        if http_client is None and settings.gateway_configured:
            http_client = httpx.Client(
                base_url=settings.gateway_api_base,
                auth=(settings.gateway_key_id, settings.gateway_key_secret.get_secret_value()),
                timeout=settings.request_timeout,
            )
        self._http = http_client

    def _client(self) -> httpx.Client:
        if not self.settings.gateway_configured or self._http is None:
            raise ConfigurationError("Razorpay credentials are not configured")
        return self._http

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = self._client().request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise GatewayUnavailableError(f"Razorpay timeout on {method} {path}") from e
        except httpx.HTTPError as e:
            raise GatewayUnavailableError(f"Razorpay transport error on {method} {path}: {e}") from e

        if resp.status_code >= 400:
            # Corps d'erreur Razorpay: {"error": {"code": ..., "description": ...}}
            try:
                description = (resp.json().get("error") or {}).get("description") or resp.text
            except ValueError:
                description = resp.text
            raise GatewayUnavailableError(
                f"Razorpay answered HTTP {resp.status_code}: {description}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise GatewayUnavailableError("Razorpay returned a non-JSON body", status_code=resp.status_code) from e

    def create_intent(self, amount: int, receipt: str, notes: Optional[Dict[str, str]] = None) -> PaymentIntent:
        """
        Crée une commande Razorpay (intent) pour un montant en unités mineures (paise).
        - InvalidAmountError si amount n'est pas un entier > 0 (aucun appel réseau).
        - GatewayUnavailableError si l'appel échoue ou expire.
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmountError("Invalid amount. Must be an integer number of minor units greater than 0.")
        if not receipt:
            raise MissingFieldsError("A unique receipt is required to create a payment intent")

        payload: Dict[str, Any] = {
            "amount": amount,
            "currency": self.settings.currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        if notes:
            payload["notes"] = {str(k): str(v) for k, v in notes.items()}

        data = self._request("POST", "/orders", json=payload)
        intent = PaymentIntent(
            intent_id=str(data.get("id") or ""),
            amount=int(data.get("amount") or amount),
            currency=str(data.get("currency") or self.settings.currency),
            receipt=str(data.get("receipt") or receipt),
            status=GATEWAY_STATUS_MAP.get(str(data.get("status") or "created"), PaymentStatus.CREATED),
        )
        if not intent.intent_id:
            raise GatewayUnavailableError("Razorpay order response has no id")
        logger.info("payments.gateway intent created id=%s receipt=%s amount=%s", intent.intent_id, receipt, amount)
        return intent

    def fetch_status(self, intent_id: str, payment_id: Optional[str] = None) -> PaymentStatus:
        """
        Relit le statut de paiement côté passerelle.
        - payment_id fourni: GET /payments/{payment_id} (statut de la transaction)
        - sinon: GET /orders/{intent_id} (statut de la commande)
        - statut lu mais inconnu de GATEWAY_STATUS_MAP: PaymentStatus.UNKNOWN
        Lève GatewayUnavailableError si la passerelle est injoignable ou ne renvoie aucun statut.
        """
        path = f"/payments/{payment_id}" if payment_id else f"/orders/{intent_id}"
        data = self._request("GET", path)
        raw = str(data.get("status") or "").strip().lower()
        if not raw:
            raise GatewayUnavailableError(f"Razorpay answered without a status on {path}")
        status = GATEWAY_STATUS_MAP.get(raw)
        if status is None:
            logger.warning("payments.gateway unknown status %r on %s", raw, path)
            return PaymentStatus.UNKNOWN
        return status

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
