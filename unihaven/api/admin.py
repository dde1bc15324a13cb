import asyncio

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from loguru import logger

from unihaven.config import get_settings
from unihaven.scheduler.jobs import Reconciler, ReconciliationBusy

router = APIRouter(prefix="/api", tags=["admin"])


def require_admin_key(x_admin_key: str = Header(None)) -> None:
    settings = get_settings()
    if settings.is_production and not settings.admin_api_key:
        raise HTTPException(status_code=503, detail="Admin API not configured")
    if settings.admin_api_key and x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=401, detail="Invalid admin key")


def get_reconciler(request: Request) -> Reconciler:
    reconciler = getattr(request.app.state, "reconciler", None)
    if reconciler is None:
        raise HTTPException(status_code=503, detail="Reconciler not running")
    return reconciler


@router.get("/admin/status", dependencies=[Depends(require_admin_key)])
async def admin_status(request: Request):
    scheduler = getattr(request.app.state, "scheduler", None)
    reconciler = getattr(request.app.state, "reconciler", None)

    jobs = []
    if scheduler:
        for job in scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run": str(job.next_run_time) if job.next_run_time else None,
                }
            )

    return {
        "scheduler_running": scheduler is not None and scheduler.running,
        "pass_running": reconciler is not None and reconciler.running,
        "jobs": jobs,
    }


async def _run_pass_now(reconciler: Reconciler) -> dict:
    try:
        summary = await reconciler.run_pass()
    except ReconciliationBusy:
        raise HTTPException(status_code=409, detail="Reconciliation pass already running")
    except asyncio.TimeoutError:
        logger.error("Manual reconciliation pass timed out")
        raise HTTPException(status_code=500, detail="Reconciliation pass failed")
    except Exception as e:
        logger.exception(f"Manual reconciliation pass failed: {e}")
        raise HTTPException(status_code=500, detail="Reconciliation pass failed")
    return summary.to_dict()


@router.post("/admin/reconcile", dependencies=[Depends(require_admin_key)])
async def trigger_reconciliation(reconciler: Reconciler = Depends(get_reconciler)):
    return await _run_pass_now(reconciler)


@router.get("/cron/ads-expiry", dependencies=[Depends(require_admin_key)])
async def trigger_ads_expiry(reconciler: Reconciler = Depends(get_reconciler)):
    """Same pass as /admin/reconcile, kept at the path operators already call."""
    return await _run_pass_now(reconciler)
