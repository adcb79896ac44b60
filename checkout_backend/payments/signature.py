"""
Vérification des signatures de paiement Razorpay (HMAC-SHA256).
Fonctions pures: pas de réseau, pas de configuration globale.
"""
import hashlib
import hmac

# module checkout_backend.payments.signature
def compute_signature(intent_id: str, payment_id: str, secret: str) -> str:
    """
    Calcule la signature attendue: HMAC-SHA256(secret, "<intent_id>|<payment_id>") en hexadécimal.
    """
    message = f"{intent_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

def verify(intent_id: str, payment_id: str, provided_signature: str, secret: str) -> bool:
    """
    Vérifie la signature renvoyée par le client après paiement.
    - Comparaison en temps constant (hmac.compare_digest).
    - Retourne False (sans lever) si une entrée est vide, non-str ou non encodable:
      l'appelant ne distingue pas « signature fausse » de « entrée malformée ».
    """
    values = (intent_id, payment_id, provided_signature, secret)
    if not all(isinstance(v, str) and v for v in values):
        return False
    try:
        expected = compute_signature(intent_id, payment_id, secret)
        return hmac.compare_digest(expected.encode("ascii"), provided_signature.encode("utf-8"))
    except (UnicodeEncodeError, ValueError):
        return False
