import asyncio

from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore
from app.schemas.customer_schemas import CustomerResponse
from app.schemas.schemas import MessageResponse
from app.services.aggregation import CustomerSpending, aggregate, by_field
from app.services.mutation_service import update_entity
from app.services.projection import pick
from app.utils.logger_config import setup_logger
from app.utils.utils import to_iso, to_iso_or_now

logger = setup_logger()


async def get_customers(db: DocumentStore) -> list[CustomerResponse]:
    """List customers with spending computed from their orders."""
    try:
        customers, orders = await asyncio.gather(
            db.get_documents(Collections.CUSTOMERS),
            db.get_documents(Collections.ORDERS),
        )
    except Exception as e:
        logger.error(f"Error fetching customers: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch customers",
        )

    spending = aggregate(orders, by_field("customerId"), CustomerSpending)

    result = []
    for data in customers:
        totals = spending.get(data["id"], CustomerSpending())
        addresses = data.get("addresses") or []
        primary = addresses[0] if addresses and isinstance(addresses[0], dict) else {}
        created_at = to_iso_or_now(data.get("createdAt"))
        result.append(
            CustomerResponse(
                customer_id=data["id"],
                full_name=data.get("fullName") or "",
                email=data.get("email") or "",
                phone_number=data.get("phoneNumber") or "",
                profile_image_url=data.get("profileImageUrl") or "",
                address=primary.get("fullAddress") or "",
                city=primary.get("city") or "",
                pincode=primary.get("pincode") or "",
                addresses=addresses,
                total_orders=pick(totals.total_orders, data.get("totalOrders"), 0),
                total_spent=totals.total_spent,
                last_order_at=pick(totals.last_order_at, to_iso(data.get("lastOrderAt")), ""),
                registered_at=created_at,
                created_at=created_at,
                status=data.get("status") or "active",
            )
        )
    return result


async def update_customer(
    db: DocumentStore, customer_id: str | None, updates: dict | None
) -> MessageResponse:
    return await update_entity(db, Collections.CUSTOMERS, customer_id, updates, "Customer")
