from fastapi import APIRouter, Depends, Query, status

from app.database.database import DocumentStore, get_db
from app.schemas.order_schema import OrderResponseSchema, OrderUpdateSchema
from app.schemas.schemas import MessageResponse, ResponseSchema
from app.services import order_service

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.get("", status_code=status.HTTP_200_OK)
async def get_orders(
    order_status: str | None = Query(None, alias="status"),
    limit: int = Query(order_service.DEFAULT_ORDER_LIMIT, ge=1),
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[list[OrderResponseSchema]]:
    """
    Newest orders first

    - **status**: exact order status, or `all`
    - **limit**: max number of orders, default 50
    """
    return ResponseSchema(
        data=await order_service.get_orders(db=db, order_status=order_status, limit=limit)
    )


@router.patch("", status_code=status.HTTP_200_OK)
async def update_order(
    payload: OrderUpdateSchema, db: DocumentStore = Depends(get_db)
) -> MessageResponse:
    return await order_service.update_order(
        db=db, order_id=payload.order_id, updates=payload.updates
    )
