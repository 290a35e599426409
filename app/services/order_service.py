from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore, fetch_by_ids
from app.schemas.order_schema import OrderResponseSchema
from app.schemas.schemas import MessageResponse
from app.services.mutation_service import update_entity
from app.services.projection import coalesce, pick
from app.utils.logger_config import setup_logger
from app.utils.utils import to_iso, to_iso_or_now

logger = setup_logger()

DEFAULT_ORDER_LIMIT = 50
DEFAULT_DELIVERY_TIME = 30


async def _delivery_person_contacts(
    db: DocumentStore, orders: list[dict]
) -> dict[str, dict[str, str]]:
    """Names and phones for assigned partners missing from the order document."""
    missing = [
        order["deliveryPersonId"]
        for order in orders
        if order.get("deliveryPersonId") and not order.get("deliveryPersonName")
    ]
    if not missing:
        return {}

    partners = await fetch_by_ids(db, Collections.DELIVERY_PERSONS, missing)
    contacts = {}
    for partner_id, documents in partners.items():
        partner = documents[0]
        contacts[partner_id] = {
            "name": pick(partner.get("fullName"), partner.get("name"), ""),
            "phone": pick(partner.get("phoneNumber"), partner.get("phone"), ""),
        }
    return contacts


async def get_orders(
    db: DocumentStore,
    order_status: str | None = None,
    limit: int = DEFAULT_ORDER_LIMIT,
) -> list[OrderResponseSchema]:
    """
    Get the newest orders, optionally restricted to one status.

    Delivery partner names not denormalised onto the order are resolved in
    batches against the delivery partner collection.
    """
    filters = []
    if order_status and order_status != "all":
        filters.append(("status", "==", order_status))

    try:
        orders = await db.get_documents(
            Collections.ORDERS,
            filters=filters,
            order_by="createdAt",
            descending=True,
            limit=limit,
        )
        contacts = await _delivery_person_contacts(db, orders)
    except Exception as e:
        logger.error(f"Error fetching orders: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch orders",
        )

    result = []
    for data in orders:
        delivery_person_id = data.get("deliveryPersonId") or None
        delivery_person_name = data.get("deliveryPersonName") or ""
        delivery_person_phone = data.get("deliveryPersonPhone") or ""
        if delivery_person_id and not delivery_person_name and delivery_person_id in contacts:
            delivery_person_name = contacts[delivery_person_id]["name"]
            delivery_person_phone = contacts[delivery_person_id]["phone"] or delivery_person_phone

        result.append(
            OrderResponseSchema(
                order_id=data["id"],
                vendor_id=data.get("vendorId") or "",
                vendor_name=data.get("vendorName") or "",
                customer_id=data.get("customerId") or "",
                customer_name=data.get("customerName") or "",
                customer_phone=data.get("customerPhone") or "",
                items=data.get("items") or [],
                item_names=data.get("itemNames") or [],
                subtotal=data.get("subtotal") or 0,
                discount=data.get("discount") or 0,
                delivery_fee=data.get("deliveryFee") or 0,
                taxes=data.get("taxes") or 0,
                total=data.get("total") or 0,
                status=data.get("status") or "Pending",
                payment_mode=data.get("paymentMode") or "Cash on Delivery",
                payment_status=data.get("paymentStatus") or "Pending",
                delivery_address=data.get("deliveryAddress") or "",
                delivery_person_id=delivery_person_id,
                delivery_person_name=delivery_person_name,
                delivery_person_phone=delivery_person_phone,
                pickup_pin=data.get("pickupPin") or "",
                delivery_pin=data.get("deliveryPin") or "",
                pickup_pin_verified=coalesce(data.get("pickupPinVerified"), False),
                delivery_pin_verified=coalesce(data.get("deliveryPinVerified"), False),
                pickup_pin_verified_at=to_iso(data.get("pickupPinVerifiedAt")) or None,
                delivery_pin_verified_at=to_iso(data.get("deliveryPinVerifiedAt")) or None,
                created_at=to_iso_or_now(data.get("createdAt")),
                estimated_delivery_time=data.get("estimatedDeliveryTime") or DEFAULT_DELIVERY_TIME,
            )
        )
    return result


async def update_order(
    db: DocumentStore, order_id: str | None, updates: dict | None
) -> MessageResponse:
    return await update_entity(db, Collections.ORDERS, order_id, updates, "Order")
