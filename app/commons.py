"""
Shared utility functions and singletons used across multiple modules.
"""

import uuid

from slowapi import Limiter
from slowapi.util import get_remote_address

# ── Shared rate-limiter instance ─────────────────────────────────────────
# Created here (not in main.py) so that route modules can import it
# without a circular dependency.
limiter = Limiter(key_func=get_remote_address)


def generate_job_id() -> str:
    """Generate a unique job ID (e.g., 'job_3f2b…', 32 hex digits)."""
    return f"job_{uuid.uuid4().hex}"
