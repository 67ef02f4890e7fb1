"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from clicktocall.config import settings
from clicktocall.services.redis_store import ping

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "click-to-call"}


@router.get("/readyz")
async def readyz():
    """
    Readiness check: preference store reachable and vendor endpoints configured.
    """
    checks = {}
    overall_ok = True

    # 1) Redis health check
    t0 = time.time()
    try:
        redis_ok = await ping()
        checks["redis"] = {
            "ok": bool(redis_ok),
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        overall_ok = overall_ok and bool(redis_ok)
    except Exception as e:
        checks["redis"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
        overall_ok = False

    # 2) Configuration checks
    config_issues = []

    if not settings.vendor_host():
        config_issues.append("VENDOR_BASE_URL has no host")

    if not settings.VENDOR_LOGIN_PATH or not settings.VENDOR_CALL_PATH:
        config_issues.append("Vendor endpoint paths not set")

    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues if config_issues else None,
        "environment": settings.environment,
        "vendor_host": settings.vendor_host(),
        "login_url": settings.vendor_login_url(),
        "call_url": settings.vendor_call_url(),
    }
    overall_ok = overall_ok and not config_issues

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
