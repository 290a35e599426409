from fastapi import APIRouter, Depends, status

from app.database.database import DocumentStore, get_db
from app.schemas.customer_schemas import CustomerResponse, CustomerUpdateSchema
from app.schemas.schemas import MessageResponse, ResponseSchema
from app.services import customer_service

router = APIRouter(prefix="/api/customers", tags=["Customers"])


@router.get("", status_code=status.HTTP_200_OK)
async def get_customers(
    db: DocumentStore = Depends(get_db),
) -> ResponseSchema[list[CustomerResponse]]:
    return ResponseSchema(data=await customer_service.get_customers(db=db))


@router.patch("", status_code=status.HTTP_200_OK)
async def update_customer(
    payload: CustomerUpdateSchema, db: DocumentStore = Depends(get_db)
) -> MessageResponse:
    return await customer_service.update_customer(
        db=db, customer_id=payload.customer_id, updates=payload.updates
    )
