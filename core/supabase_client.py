# core/supabase_client.py

from typing import Optional

from supabase import create_client, Client
from core.config import settings
from core.logging_config import logger


# ============================================================
# Supabase client (service role: reads/writes jobs + requests,
# and signs tokens out through auth.admin)
# ============================================================
def get_supabase_client() -> Optional[Client]:
    """
    Returns None when the service-role credentials are missing or
    the client cannot be built. Callers map that to an HTTP 500.
    """
    url = settings.SUPABASE_URL
    key = settings.SUPABASE_SERVICE_ROLE_KEY

    if not url or not key:
        logger.error(
            f"Supabase not configured (URL: {'SET' if url else 'MISSING'}, "
            f"SERVICE ROLE KEY: {'SET' if key else 'MISSING'})"
        )
        return None

    try:
        return create_client(url, key)
    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


# ============================================================
# Health check
# ============================================================
def _check_table(client: Client, table: str) -> dict:
    try:
        res = client.table(table).select("id").limit(1).execute()
        return {"status": "ok", "rows_found": len(res.data or [])}
    except Exception as err:
        return {"status": "error", "detail": str(err)}


def ping_supabase() -> dict:
    """
    One-row select against each lifecycle table.
    Auth endpoints are not touched.
    """
    client = get_supabase_client()
    if client is None:
        return {"service": "Supabase", "status": "not_configured"}

    tables = {t: _check_table(client, t) for t in (settings.JOBS_TABLE, settings.REQUESTS_TABLE)}
    overall = "ok" if all(r["status"] == "ok" for r in tables.values()) else "degraded"

    return {
        "service": "Supabase",
        "status": overall,
        "tables": tables,
    }
