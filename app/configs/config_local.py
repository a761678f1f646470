"""
Development / local environment configuration overrides.

Only values that DIFFER from production need to be declared here.
The base config.py merges these on top of the shared defaults.
"""

# FastAPI docs are enabled in development
DOCS_ENABLED = True

# The React dev server and the API itself
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
]

# Faster feedback while developing against the provider
POLL_INTERVAL_SECONDS = 3
