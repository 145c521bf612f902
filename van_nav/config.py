"""Client configuration, paths and fixed keys."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Remote API
API_BASE_URL = os.getenv("VAN_NAV_API_URL", "http://localhost:6412").rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("VAN_NAV_TIMEOUT", "10"))

# Pause before the single retry after a 401, and before redirecting to login
RETRY_DELAY = float(os.getenv("VAN_NAV_RETRY_DELAY", "0.5"))
REDIRECT_DELAY = float(os.getenv("VAN_NAV_REDIRECT_DELAY", "1.5"))

# Client-local persistent storage
DATA_DIR = Path(os.getenv("VAN_NAV_DATA_DIR", str(Path.home() / ".van_nav")))
TOKEN_KEY = "_token"
TAG_KEY = "tag"

# API paths that never require a stored credential
LOGIN_API_PATH = "/api/login"
CHECK_TOKEN_API_PATH = "/api/check-token"

# UI entry point for authentication
LOGIN_PATH = "/login"

# Category tags with special meaning
ALL_TAG = "All Tools"
ADMIN_TAG = "Admin"
SEARCH_TAG = "Search"

SEARCH_ENGINE_URL = os.getenv("VAN_NAV_SEARCH_URL", "https://www.google.com/search?q=")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
WEB_PORT = int(os.getenv("WEB_PORT", "8000"))
# Signs the web session cookie; FastHTML keeps a generated key in .sesskey when unset
WEB_SECRET_KEY = os.getenv("VAN_NAV_SECRET_KEY")
