# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, PayFast), sécurité cookies, CORS/hosts
- Expose les constantes de tarification (TVA, frais de port) et les délais d'attente
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _env_flag(name: str, default: str = "false") -> bool:
    return _clean_env(os.getenv(name, default)).lower() in ("1", "true", "yes")

def _env_float(name: str, default: str) -> float:
    try:
        return float(_clean_env(os.getenv(name) or default))
    except ValueError:
        return float(default)

# Supabase: URL et clés (anon pour les sessions, service pour les écritures du cycle de commande)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Délai maximal (secondes) pour tout appel à la base
STORE_TIMEOUT_SECONDS = _env_float("STORE_TIMEOUT_SECONDS", "10")

# Tarification (Afrique du Sud): TVA 15 %, frais de port forfaitaires
VAT_RATE = _env_float("VAT_RATE", "0.15")
FLAT_SHIPPING_FEE = _env_float("FLAT_SHIPPING_FEE", "49.99")
CURRENCY = _clean_env(os.getenv("CURRENCY") or "ZAR")
SHIPPING_COUNTRY = _clean_env(os.getenv("SHIPPING_COUNTRY") or "South Africa")
STORE_NAME = _clean_env(os.getenv("STORE_NAME") or "Patriocele Fragrance")

# PayFast: identifiants marchand (sandbox par défaut) et secret partagé
PAYFAST_MERCHANT_ID = _clean_env(os.getenv("PAYFAST_MERCHANT_ID") or "10000100")
PAYFAST_MERCHANT_KEY = _clean_env(os.getenv("PAYFAST_MERCHANT_KEY") or "46f0cd694581a")
PAYFAST_PASSPHRASE = _clean_env(os.getenv("PAYFAST_PASSPHRASE") or "")
PAYFAST_SANDBOX = _env_flag("PAYFAST_SANDBOX", "true")
PAYFAST_HOST = "sandbox.payfast.co.za" if PAYFAST_SANDBOX else "www.payfast.co.za"
PAYFAST_PROCESS_URL = f"https://{PAYFAST_HOST}/eng/process"
PAYFAST_VALIDATE_URL = f"https://{PAYFAST_HOST}/eng/query/validate"
PAYFAST_VALIDATE_WITH_SERVER = _env_flag("PAYFAST_VALIDATE_WITH_SERVER", "false")
PAYFAST_NOTIFY_URL = _clean_env(os.getenv("PAYFAST_NOTIFY_URL") or "")
GATEWAY_TIMEOUT_SECONDS = _env_float("GATEWAY_TIMEOUT_SECONDS", "10")

# Pages de retour/annulation du paiement
BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000").rstrip("/")
PAYMENT_RETURN_PATH = os.getenv("PAYMENT_RETURN_PATH", "/api/v1/payments/return")
PAYMENT_CANCEL_PATH = os.getenv("PAYMENT_CANCEL_PATH", "/api/v1/payments/return?payment_status=CANCELLED")

# Cookies / sécurité HTTP
COOKIE_SECURE = _env_flag("COOKIE_SECURE", "false")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]
