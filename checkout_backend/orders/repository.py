"""
Accès aux données pour la feature 'orders' (store Supabase optionnel).
Tables: orders (parent) puis order_items (enfants), reliées par order_id.
"""
from typing import Any, Dict, List, Optional
import logging

import checkout_backend.infra.supabase_client as supabase_client
from checkout_backend.errors import OrderInsertError, OrderItemsInsertError

logger = logging.getLogger(__name__)

# module checkout_backend.orders.repository
def insert_order(row: Dict[str, Any]) -> Optional[dict]:
    """
    Insère la ligne parent dans 'orders' via service-role.
    Retourne la ligne insérée (ou {"status": "ok"}) si succès, None en cas d'erreur.
    """
    try:
        res = supabase_client.get_service_supabase().table("orders").insert(row).execute()
        rows = res.data or []
        return rows[0] if isinstance(rows, list) and rows else {"status": "ok"}
    except Exception:
        logger.exception("orders.repository.insert_order failed order_id=%s", row.get("order_id"))
        return None

def insert_order_items(order_id: str, items: List[Dict[str, Any]]) -> Optional[List[dict]]:
    """
    Insère les lignes 'order_items' rattachées à order_id.
    Retourne la liste insérée, None en cas d'erreur.
    """
    payload = [{**item, "order_id": order_id} for item in items]
    if not payload:
        return []
    try:
        res = supabase_client.get_service_supabase().table("order_items").insert(payload).execute()
        return res.data or payload
    except Exception:
        logger.exception("orders.repository.insert_order_items failed order_id=%s count=%s", order_id, len(payload))
        return None

def store_order(row: Dict[str, Any], items: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Écrit la commande puis ses lignes.
    - OrderInsertError si la ligne parent échoue (rien n'est écrit)
    - OrderItemsInsertError si les lignes échouent après un parent réussi (échec partiel,
      la commande parent reste en base et doit être complétée manuellement)
    """
    order_id = str(row.get("order_id") or "")
    if insert_order(row) is None:
        raise OrderInsertError("Failed to insert order", order_id=order_id)
    inserted = insert_order_items(order_id, items)
    if inserted is None:
        raise OrderItemsInsertError("Order stored but its items could not be inserted", order_id=order_id)
    return {"status": "ok", "order_id": order_id, "items": len(inserted)}
