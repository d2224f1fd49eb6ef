"""
Health Router: readiness and scanner connection status per terminal.
"""
from fastapi import APIRouter, Request, Response, status
from pos_terminal.services.scanner_link import ScannerStatus

router = APIRouter()


@router.get("/health")
async def health_check(request: Request, response: Response):
    """
    Report scanner link status for every terminal.
    Returns 503 while the app is still starting (Readiness Probe).
    """
    if not getattr(request.app.state, "is_ready", False):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "initializing", "message": "Application is starting up"}

    terminals = request.app.state.terminal_service.all()
    scanners = {
        t.variant.value: {
            "status": t.scanner.status.value if t.scanner_enabled else "disabled",
            "url": t.scanner.url,
            "reconnect_pending": t.scanner.reconnect_pending,
            "transaction_state": t.controller.state.value,
        }
        for t in terminals
    }

    enabled = [s for s in scanners.values() if s["status"] != "disabled"]
    connected = sum(1 for s in enabled if s["status"] == ScannerStatus.CONNECTED.value)
    total = len(enabled)

    # Only scanners that are meant to run count; manual entry works regardless
    if connected == total:
        overall = "healthy"
    elif connected == 0:
        overall = "critical"
    else:
        overall = "degraded"

    return {
        "status": overall,
        "terminals": scanners,
        "connected": connected,
        "total": total,
    }
