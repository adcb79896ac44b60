"""
Adaptateur Shopify Admin API: création de commande.

Politique « au plus une fois »: aucune requête de création n'est rejouée, ni sur
rejet (HTTP non-2xx) ni sur erreur de transport. Une commande dupliquée est pire
qu'un échec visible, que l'appelant réconcilie à partir des identifiants de paiement.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from checkout_backend.config import CheckoutSettings
from checkout_backend.errors import ConfigurationError, PlatformRejectedError, PlatformUnavailableError
from .cart_mapper import minor_to_major
from .models import CommerceOrder, CommerceOrderRequest, FinancialStatus

logger = logging.getLogger(__name__)

# module checkout_backend.orders.commerce_client
def to_platform_payload(request: CommerceOrderRequest) -> Dict[str, Any]:
    """
    Sérialise la requête canonique au format Shopify {"order": {...}}.
    Seul endroit où un montant passe en unités majeures (transactions[].amount).
    """
    order: Dict[str, Any] = {
        "email": request.email,
        "line_items": [dict(li) for li in request.line_items],
        "customer": dict(request.customer),
        "shipping_address": dict(request.shipping_address),
        "billing_address": dict(request.billing_address),
        "financial_status": request.financial_status.value,
        "note_attributes": [{"name": k, "value": v} for k, v in request.note_attributes.items()],
        "tags": ", ".join(request.tags),
    }
    if request.note:
        order["note"] = request.note
    if request.financial_status == FinancialStatus.PAID and request.total_amount:
        order["currency"] = request.currency
        order["transactions"] = [{
            "kind": "sale",
            "status": "success",
            "amount": minor_to_major(request.total_amount),
            "gateway": request.gateway,
            "authorization": request.payment_id or "",
        }]
    return {"order": order}


class CommerceOrderClient:
    def __init__(self, settings: CheckoutSettings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        if http_client is None and settings.platform_configured:
            http_client = httpx.Client(timeout=settings.request_timeout)
        self._http = http_client

    @property
    def orders_url(self) -> str:
        return f"https://{self.settings.store_domain}/admin/api/{self.settings.api_version}/orders.json"

    def _client(self) -> httpx.Client:
        if not self.settings.platform_configured or self._http is None:
            raise ConfigurationError("Shopify store or access token is not configured")
        return self._http

    def create_order(self, request: CommerceOrderRequest) -> CommerceOrder:
        """
        POST /admin/api/<version>/orders.json, une seule tentative.
        - PlatformRejectedError(status_code, body) si la réponse n'est pas 2xx (corps conservé)
        - PlatformUnavailableError sur erreur réseau ou timeout
        """
        client = self._client()
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.settings.access_token.get_secret_value(),
        }
        try:
            resp = client.post(self.orders_url, json=to_platform_payload(request), headers=headers)
        except httpx.TimeoutException as e:
            raise PlatformUnavailableError("Shopify order creation timed out") from e
        except httpx.HTTPError as e:
            raise PlatformUnavailableError(f"Shopify transport error: {e}") from e

        try:
            body: Any = resp.json()
        except ValueError:
            body = resp.text

        if not resp.is_success:
            logger.error("orders.commerce create failed status=%s body=%s", resp.status_code, body)
            raise PlatformRejectedError(resp.status_code, body)

        order = (body or {}).get("order") if isinstance(body, dict) else None
        if not isinstance(order, dict) or not order.get("id"):
            raise PlatformRejectedError(resp.status_code, body, "Shopify answered without an order id")

        created = CommerceOrder(
            order_id=str(order["id"]),
            order_number=str(order["order_number"]) if order.get("order_number") is not None else None,
            financial_status=request.financial_status,
            line_items=order.get("line_items") or [dict(li) for li in request.line_items],
            note_attributes=dict(request.note_attributes),
            tags=list(request.tags),
            raw=order,
        )
        logger.info("orders.commerce created order_id=%s order_number=%s", created.order_id, created.order_number)
        return created

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
