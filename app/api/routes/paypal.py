"""PayPal checkout routes. Order bodies and statuses are relayed from the provider."""

from fastapi import APIRouter, Path
from fastapi.responses import JSONResponse

from app.api.deps import Payments
from app.schemas.payments import OrderRequest

router = APIRouter(tags=["paypal"])

ORDER_ID = Path(..., pattern="^[A-Za-z0-9-]+$")


@router.get("/paypal/setup")
async def paypal_setup(payments: Payments):
    return await payments.client_token()


@router.post("/paypal/order")
async def create_order(payload: OrderRequest, payments: Payments):
    result = await payments.create_order(payload)
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.post("/paypal/order/{order_id}/capture")
async def capture_order(payments: Payments, order_id: str = ORDER_ID):
    result = await payments.capture_order(order_id)
    return JSONResponse(status_code=result.status_code, content=result.body)
