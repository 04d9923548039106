"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(os.environ.get("DB_PATH", PROJECT_ROOT / "data" / "db" / "booking-calendar.db"))

# =============================================================================
# ZOHO OAUTH (from environment)
# =============================================================================

ZOHO_CLIENT_ID = os.environ.get("ZOHO_CLIENT_ID", "")
ZOHO_CLIENT_SECRET = os.environ.get("ZOHO_CLIENT_SECRET", "")
ZOHO_REDIRECT_URI = os.environ.get("ZOHO_REDIRECT_URI", "http://localhost:8000/oauth-callback")
ZOHO_ACCOUNTS_URL = os.environ.get("ZOHO_ACCOUNTS_URL", "https://accounts.zoho.com").rstrip("/")
ZOHO_SCOPE = os.environ.get("ZOHO_SCOPE", "ZohoCRM.modules.ALL")

# Refresh when fewer than this many seconds remain on the access token
TOKEN_REFRESH_MARGIN_SECONDS = int(os.environ.get("TOKEN_REFRESH_MARGIN_SECONDS", "300"))

# =============================================================================
# ZOHO CRM API
# =============================================================================

# Used when the token response carries no api_domain
ZOHO_API_URL = os.environ.get("ZOHO_API_URL", "https://www.zohoapis.com").rstrip("/")
ZOHO_API_VERSION = os.environ.get("ZOHO_API_VERSION", "v8")
ZOHO_PER_PAGE = int(os.environ.get("ZOHO_PER_PAGE", "200"))
ZOHO_TIMEOUT_SECONDS = float(os.environ.get("ZOHO_TIMEOUT_SECONDS", "15"))

# Max simultaneous enrichment lookups per batch fetch
ENRICHMENT_CONCURRENCY = int(os.environ.get("ENRICHMENT_CONCURRENCY", "8"))

DEAL_FIELDS = [
    "Deal_Name",
    "Fecha_Inicio_Evento",
    "Fecha_Fin_Evento",
    "Artista",
    "Ciudad",
    "Recinto",
    "Cach",
    "Account_Name",
    "Stage",
]

# =============================================================================
# TASK NOTIFIER
# =============================================================================

TASK_DUE_DAYS = int(os.environ.get("TASK_DUE_DAYS", "2"))
TASK_PRIORITY = os.environ.get("TASK_PRIORITY", "Alto")
TASK_STATUS = os.environ.get("TASK_STATUS", "No iniciado")

# =============================================================================
# SESSION / FRONTEND
# =============================================================================

SESSION_SECRET = os.environ.get("SESSION_SECRET", "change-me")
SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "false").lower() == "true"
# Idle lifetime of the session cookie and of its server-side credentials
SESSION_MAX_AGE_SECONDS = int(os.environ.get("SESSION_MAX_AGE_SECONDS", str(14 * 24 * 3600)))
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:4200").rstrip("/")
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:4200"
    ).split(",")
    if origin.strip()
]

# =============================================================================
# API CONFIGURATION
# =============================================================================

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
API_VERSION = "1.0.0"
