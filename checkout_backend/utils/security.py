from typing import Optional

def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """
    Rend un secret affichable dans les logs: seuls les `visible` derniers caractères
    sont conservés ("****abcd"); chaîne vide si absent.
    """
    if not value:
        return ""
    if len(value) <= visible * 2:
        return "*" * len(value)
    return "*" * 4 + value[-visible:]
