# app/routes/health.py
"""
Health check endpoints: liveness, and readiness covering the database pool
and the AI model configuration.
"""

import time

from fastapi import APIRouter

from app.config import settings
from app.db.pool import db_health_check
from app.services.ai.model_client import model_client

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "second-brain"}


@router.get("/readyz")
async def readyz():
    """
    Readiness check with all dependencies.

    The AI check never calls the provider; it reports configuration and
    local admission-control state only, so probes do not spend quota.
    """
    checks = {}
    overall_ok = True

    # 1) Database pool
    t0 = time.time()
    try:
        db_health = await db_health_check()
        is_healthy = db_health.get("healthy", False)

        checks["database"] = {
            "ok": is_healthy,
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        if "pool_stats" in db_health:
            checks["database"]["pool_stats"] = db_health["pool_stats"]
        if not is_healthy:
            checks["database"]["error"] = db_health.get("error", "Database unhealthy")

        overall_ok = overall_ok and is_healthy

    except Exception as e:
        checks["database"] = {
            "ok": False,
            "error": f"{type(e).__name__}: {e}",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        overall_ok = False

    # 2) AI model; unconfigured AI degrades enrichment but does not block saves
    ai_health = model_client.health()
    checks["ai"] = {
        "ok": ai_health["configured"],
        "model": ai_health["model"],
        "rate_governor": ai_health["rate_governor"],
    }
    if not ai_health["configured"]:
        checks["ai"]["error"] = "OPENAI_API_KEY not set (offline heuristics in use)"

    checks["configuration"] = {"environment": settings.environment}

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
