"""
Sermon Library - Configuration
All settings loaded from environment variables with sensible defaults.

Item metadata lives in MongoDB and the binary files (thumbnails, audio)
live on Google Drive.  Nothing is persisted on local disk apart from the
prebuilt frontend bundle that is served as static files.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
_ = load_dotenv()

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("PORT", "3000"))
APP_ENV = os.getenv("APP_ENV", "development")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# ---------------------------------------------------------------------------
# Logging — stdout only
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent

# Prebuilt frontend bundle (index.html + assets/)
FRONTEND_DIST_DIR = Path(os.getenv("FRONTEND_DIST_DIR", str(PROJECT_ROOT / "dist")))

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
CORS_METHODS = ["GET", "POST", "PUT", "DELETE"]

# ---------------------------------------------------------------------------
# MongoDB
# ---------------------------------------------------------------------------
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "sermons")
MONGO_COLLECTION = os.getenv("MONGO_COLLECTION", "items")

# ---------------------------------------------------------------------------
# Google Drive (service account)
#
# Credentials are either given as discrete GOOGLE_* variables (handy on
# hosts that only offer env vars) or as a JSON key file pointed to by
# GOOGLE_APPLICATION_CREDENTIALS.
# ---------------------------------------------------------------------------
GOOGLE_TYPE = os.getenv("GOOGLE_TYPE", "service_account")
GOOGLE_PROJECT_ID = os.getenv("GOOGLE_PROJECT_ID", "")
GOOGLE_PRIVATE_KEY_ID = os.getenv("GOOGLE_PRIVATE_KEY_ID", "")
# Hosts usually store the PEM key on a single line with literal "\n"
GOOGLE_PRIVATE_KEY = os.getenv("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n")
GOOGLE_CLIENT_EMAIL = os.getenv("GOOGLE_CLIENT_EMAIL", "")
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
GOOGLE_AUTH_URI = os.getenv(
    "GOOGLE_AUTH_URI", "https://accounts.google.com/o/oauth2/auth"
)
GOOGLE_TOKEN_URI = os.getenv("GOOGLE_TOKEN_URI", "https://oauth2.googleapis.com/token")
GOOGLE_AUTH_PROVIDER_CERT_URL = os.getenv(
    "GOOGLE_AUTH_PROVIDER_CERT_URL", "https://www.googleapis.com/oauth2/v1/certs"
)
GOOGLE_CLIENT_CERT_URL = os.getenv("GOOGLE_CLIENT_CERT_URL", "")
GOOGLE_APPLICATION_CREDENTIALS = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
DRIVE_API_URL = os.getenv("DRIVE_API_URL", "https://www.googleapis.com")
DRIVE_TIMEOUT = float(os.getenv("DRIVE_TIMEOUT", "120"))


def drive_credentials_info() -> Optional[Dict[str, Any]]:
    """
    Build the service-account info dict from the discrete GOOGLE_* variables.

    Returns None when the key or client email is missing, in which case the
    caller should fall back to GOOGLE_APPLICATION_CREDENTIALS.
    """
    if not (GOOGLE_PRIVATE_KEY and GOOGLE_CLIENT_EMAIL):
        return None
    return {
        "type": GOOGLE_TYPE,
        "project_id": GOOGLE_PROJECT_ID,
        "private_key_id": GOOGLE_PRIVATE_KEY_ID,
        "private_key": GOOGLE_PRIVATE_KEY,
        "client_email": GOOGLE_CLIENT_EMAIL,
        "client_id": GOOGLE_CLIENT_ID,
        "auth_uri": GOOGLE_AUTH_URI,
        "token_uri": GOOGLE_TOKEN_URI,
        "auth_provider_x509_cert_url": GOOGLE_AUTH_PROVIDER_CERT_URL,
        "client_x509_cert_url": GOOGLE_CLIENT_CERT_URL,
    }
