import os

USER_AGENT = "TravelWithAI/1.0"

# Generative model
GEMINI_API_BASE = os.environ.get(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
)
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash-exp")
GEMINI_API_KEY_ENV = "GEMINI_API_KEY"

# HTTP
HTTP_TIMEOUT_S = float(os.environ.get("HTTP_TIMEOUT_S", "60"))

# Remote config (Firebase Remote Config client fetch). Leave the project empty
# to read the key from the environment instead.
REMOTE_CONFIG_BASE = os.environ.get(
    "REMOTE_CONFIG_BASE", "https://firebaseremoteconfig.googleapis.com"
)
REMOTE_CONFIG_PROJECT = os.environ.get("REMOTE_CONFIG_PROJECT", "")
REMOTE_CONFIG_APP_ID = os.environ.get("REMOTE_CONFIG_APP_ID", "")
REMOTE_CONFIG_API_KEY = os.environ.get("REMOTE_CONFIG_API_KEY", "")
REMOTE_CONFIG_KEY_NAME = "api_key"
MIN_FETCH_INTERVAL_S = float(os.environ.get("MIN_FETCH_INTERVAL_S", "20"))

# Location
LOCATION_WAIT_TIMEOUT_S = float(os.environ.get("LOCATION_WAIT_TIMEOUT_S", "10"))

# Sessions
MAX_SESSIONS = int(os.environ.get("MAX_SESSIONS", "1000"))
