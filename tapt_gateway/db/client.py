"""
Supabase Client Management
==========================

Builds Supabase clients explicitly, once per request.

SECURITY PRINCIPLE (Least Privilege):
- Public forms reach the gateway with the ANON key; the gateway itself
  talks to Supabase with the SERVICE_ROLE key (rows, auth admin, storage)

No client is cached at module level: handlers are stateless and each
request receives its own client through FastAPI dependencies.
"""

import logging

from supabase import create_client, Client

from tapt_gateway import config

logger = logging.getLogger(__name__)


def create_service_client() -> Client:
    """
    Create a Supabase client for privileged operations (SERVICE_ROLE key).

    Raises:
        RuntimeError: if the URL or service key is not configured
    """
    if not config.SUPABASE_URL:
        raise RuntimeError("SUPABASE_URL not configured")

    if not config.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY not configured")

    client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE_KEY)
    logger.debug("Supabase service client created")
    return client

