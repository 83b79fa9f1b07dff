"""
Sweep endpoint.

Called by the scheduler, not by users: authenticated with a shared cron
secret instead of a JWT.
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from api.dependencies import get_reaper
from shared.config import get_settings
from shared.models import RequestContext, Trigger

from .interfaces import IReaper
from .models import SweepReport

router = APIRouter()


def verify_cron_secret(x_cron_secret: Optional[str] = Header(default=None)) -> None:
    """Dependency that rejects requests without the configured cron secret."""
    expected = get_settings().cron_secret
    if not expected:
        raise HTTPException(status_code=503, detail="Sweep not configured")
    if not x_cron_secret or not hmac.compare_digest(x_cron_secret, expected):
        raise HTTPException(status_code=401, detail="Invalid cron secret")


@router.post("/sweep", response_model=SweepReport, dependencies=[Depends(verify_cron_secret)])
async def run_sweep(reaper: IReaper = Depends(get_reaper)) -> SweepReport:
    """
    Run the auto-terminate sweep once.

    Always returns 200 with the aggregate report; per-order failures are
    counted in `errors`.
    """
    return await reaper.sweep(RequestContext.for_trigger(Trigger.SWEEP))
