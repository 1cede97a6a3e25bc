# src/oauth_listener/constants.py

# Redirect URI registered with Google for the Antigravity OAuth client
ANTIGRAVITY_REDIRECT_URI = "http://localhost:51121/oauth-callback"

# Page the browser lands on once the callback has been captured
AUTH_SUCCESS_REDIRECT_URL = "https://antigravity.google/auth-success"

DEFAULT_CALLBACK_TIMEOUT_MS = 5 * 60 * 1000  # 5 minutes

CALLBACK_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
