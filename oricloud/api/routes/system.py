"""System diagnostics."""

from __future__ import annotations

import platform
import time

from fastapi import APIRouter, Depends, Request

from oricloud.api.auth import get_current_principal
from oricloud.config import get_settings
from oricloud.infra.db.sqlite import ping_db


router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/readiness")
async def api_readiness(request: Request, _principal=Depends(get_current_principal)):
    settings = get_settings()
    checks = {
        "database": {"ok": False},
        "auth": {"ok": not settings.auth_enabled or settings.auth_jwt_secret not in {"", "change-me-in-production"}},
        "broker": {"ok": False, "topics": 0},
        "platform": {"ok": True, "value": platform.platform()},
    }

    try:
        checks["database"]["ok"] = await ping_db()
    except Exception as exc:
        checks["database"]["error"] = str(exc)

    broker = getattr(request.app.state, "broker", None)
    if broker is not None:
        checks["broker"] = {"ok": True, "topics": len(broker.topics())}

    return {"timestamp": int(time.time()), "checks": checks}
