from typing import Any

from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore
from app.schemas.complaint_schemas import (
    ComplaintListResponse,
    ComplaintSchema,
    ComplaintSummary,
    ComplaintUpdateSchema,
)
from app.schemas.schemas import MessageResponse
from app.schemas.status_schema import ComplaintPriority, ComplaintStatus, RefundStatus
from app.utils.logger_config import setup_logger
from app.utils.utils import to_iso, utcnow

logger = setup_logger()

# Complaints considered by the list and its summary, newest first
COMPLAINTS_WINDOW = 200

RESOLVED_STATUSES = (ComplaintStatus.RESOLVED.value, ComplaintStatus.CLOSED.value)
HIGH_PRIORITIES = (ComplaintPriority.HIGH.value, ComplaintPriority.URGENT.value)


def _complaint(data: dict) -> ComplaintSchema:
    return ComplaintSchema(
        complaint_id=data["id"],
        customer_id=data.get("customerId") or "",
        customer_name=data.get("customerName") or "Unknown",
        customer_phone=data.get("customerPhone") or "",
        customer_email=data.get("customerEmail") or "",
        type=data.get("type") or "OTHER",
        subject=data.get("subject") or "",
        description=data.get("description") or "",
        status=data.get("status") or ComplaintStatus.OPEN.value,
        priority=data.get("priority") or ComplaintPriority.MEDIUM.value,
        order_id=data.get("orderId") or "",
        vendor_id=data.get("vendorId") or "",
        vendor_name=data.get("vendorName") or "",
        delivery_person_id=data.get("deliveryPersonId") or "",
        delivery_person_name=data.get("deliveryPersonName") or "",
        order_total=data.get("orderTotal") or 0,
        payment_mode=data.get("paymentMode") or "",
        razorpay_payment_id=data.get("razorpayPaymentId") or "",
        refund_requested=bool(data.get("refundRequested") or False),
        refund_amount=data.get("refundAmount") or 0,
        refund_status=data.get("refundStatus") or "",
        refund_id=data.get("refundId") or "",
        resolution=data.get("resolution") or "",
        admin_notes=data.get("adminNotes") or "",
        created_at=to_iso(data.get("createdAt")),
        updated_at=to_iso(data.get("updatedAt")),
    )


def _summary(documents: list[dict]) -> ComplaintSummary:
    return ComplaintSummary(
        total=len(documents),
        open=sum(1 for c in documents if c.get("status") == ComplaintStatus.OPEN.value),
        in_progress=sum(
            1 for c in documents if c.get("status") == ComplaintStatus.IN_PROGRESS.value
        ),
        resolved=sum(1 for c in documents if c.get("status") in RESOLVED_STATUSES),
        refund_pending=sum(
            1
            for c in documents
            if c.get("refundRequested") and c.get("refundStatus") == RefundStatus.PENDING.value
        ),
        high_priority=sum(1 for c in documents if c.get("priority") in HIGH_PRIORITIES),
    )


async def get_complaints(
    db: DocumentStore,
    complaint_status: str | None = None,
    priority: str | None = None,
    complaint_type: str | None = None,
) -> ComplaintListResponse:
    """
    Get the latest complaints with optional filters and a summary.

    Filters are applied in memory to the latest COMPLAINTS_WINDOW complaints;
    the summary always covers the whole window, unfiltered.
    """
    try:
        documents = await db.get_documents(
            Collections.COMPLAINTS,
            order_by="createdAt",
            descending=True,
            limit=COMPLAINTS_WINDOW,
        )
    except Exception as e:
        logger.error(f"Error fetching complaints: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch complaints",
        )

    complaints = [_complaint(data) for data in documents]
    if complaint_status:
        complaints = [c for c in complaints if c.status == complaint_status]
    if priority:
        complaints = [c for c in complaints if c.priority == priority]
    if complaint_type:
        complaints = [c for c in complaints if c.type == complaint_type]

    return ComplaintListResponse(complaints=complaints, summary=_summary(documents))


async def update_complaint(
    db: DocumentStore, update_data: ComplaintUpdateSchema
) -> MessageResponse:
    """
    Update a complaint's status, priority, resolution or admin notes.

    Moving to RESOLVED or CLOSED also stamps who resolved it and when.
    """
    if not update_data.complaint_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Complaint ID required"
        )

    now = utcnow()
    updates: dict[str, Any] = {"updatedAt": now}
    if update_data.status:
        updates["status"] = update_data.status.value
        if update_data.status.value in RESOLVED_STATUSES:
            updates["resolvedAt"] = now
            updates["resolvedBy"] = "admin"
    # Explicitly sent values are written, including empty strings
    if "resolution" in update_data.model_fields_set:
        updates["resolution"] = update_data.resolution
    if "admin_notes" in update_data.model_fields_set:
        updates["adminNotes"] = update_data.admin_notes
    if update_data.priority:
        updates["priority"] = update_data.priority.value

    try:
        complaint = await db.get_document(Collections.COMPLAINTS, update_data.complaint_id)
        if complaint is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Complaint not found"
            )
        await db.update_document(Collections.COMPLAINTS, update_data.complaint_id, updates)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating complaint {update_data.complaint_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update complaint",
        )

    logger.info(f"Complaint {update_data.complaint_id} updated: {sorted(updates)}")
    return MessageResponse(message="Complaint updated successfully")
