from typing import Optional
from supabase import create_client, Client
from checkout_backend.config import load_settings

_service_supabase: Optional[Client] = None

def get_service_supabase() -> Client:
    """
    Client Supabase service-role (bypass RLS), partagé par le process.
    Utilisé pour le store de commandes et le stockage du token OAuth.
    """
    global _service_supabase
    settings = load_settings()
    if not settings.persistence_configured:
        raise RuntimeError("SUPABASE_URL / SUPABASE_SERVICE_KEY manquants pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(settings.supabase_url, settings.supabase_service_key.get_secret_value())
    return _service_supabase
