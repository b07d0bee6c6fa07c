"""
Cron job endpoints for scheduled tasks.

Called by the platform scheduler with CRON_SECRET authentication.
"""
import os

from fastapi import APIRouter, Depends, Header, HTTPException

from shopping.errors import ShoppingError
from shopping.orders import OrderCoordinator
from .deps import get_order_coordinator, to_http

router = APIRouter(prefix="/api/cron", tags=["cron"])


def _verify_cron_secret(authorization: str | None) -> None:
    """Verify cron job authentication."""
    cron_secret = os.environ.get("CRON_SECRET", "")
    if not cron_secret or authorization != f"Bearer {cron_secret}":
        raise HTTPException(status_code=401, detail="Invalid cron secret")


@router.get("/settle_carts")
async def cron_settle_carts(
    authorization: str = Header(None),
    orders: OrderCoordinator = Depends(get_order_coordinator),
):
    """
    Finish checkouts whose cart was not cleared in-line.

    Picks orders older than the coordinator's grace period (CART_SETTLE_GRACE_SECONDS)
    without the cart-cleared marker and settles their carts.
    """
    _verify_cron_secret(authorization)
    try:
        return await orders.settle_pending()
    except ShoppingError as e:
        raise to_http(e)
