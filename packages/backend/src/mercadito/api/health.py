"""Health check endpoint — server up, Mongo reachable."""

from fastapi import APIRouter, Request

from mercadito import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    checks = {"server": "ok", "version": __version__}

    db = request.app.state.container.db
    try:
        await db.command("ping")
        checks["mongo"] = "ok"
    except Exception as e:
        checks["mongo"] = f"error: {e}"

    status = "healthy" if checks["mongo"] == "ok" else "degraded"
    return {"status": status, **checks}
