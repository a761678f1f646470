"""
Production environment configuration.

These are the baseline defaults. Local overrides live in config_local.py.
"""

import os

# FastAPI docs are disabled in production
DOCS_ENABLED = False

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
