"""
Admin writes against single entity documents.

Covers the partial-update PATCH endpoints plus the suspension and
verification state machines shared by vendors and delivery partners.
"""
from dataclasses import dataclass, field
from typing import Any

from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore
from app.schemas.schemas import MessageResponse, SuspensionResponse
from app.schemas.status_schema import (
    AdminAction,
    VerificationAction,
    VerificationStatus,
)
from app.services.audit_log_service import AdminLogService
from app.utils.logger_config import setup_logger
from app.utils.utils import iso, utcnow

logger = setup_logger()


@dataclass(frozen=True)
class SuspensionTarget:
    collection: str
    label: str
    id_label: str
    id_key: str
    name_field: str
    target_type: str
    suspended_action: AdminAction
    reinstated_action: AdminAction
    # Live-status flags forced off while suspended
    offline_flags: tuple[str, ...] = ("isOnline",)


VENDOR_SUSPENSION = SuspensionTarget(
    collection=Collections.VENDORS,
    label="Vendor",
    id_label="Vendor ID",
    id_key="vendorId",
    name_field="shopName",
    target_type="vendor",
    suspended_action=AdminAction.VENDOR_SUSPENDED,
    reinstated_action=AdminAction.VENDOR_REINSTATED,
)

DELIVERY_SUSPENSION = SuspensionTarget(
    collection=Collections.DELIVERY_PERSONS,
    label="Delivery partner",
    id_label="Delivery person ID",
    id_key="deliveryPersonId",
    name_field="fullName",
    target_type="deliveryPerson",
    suspended_action=AdminAction.DELIVERY_PARTNER_SUSPENDED,
    reinstated_action=AdminAction.DELIVERY_PARTNER_REINSTATED,
    offline_flags=("isOnline", "isAvailable"),
)


@dataclass(frozen=True)
class VerificationTarget:
    collection: str
    label: str
    id_label: str
    on_approve: dict[str, Any] = field(default_factory=dict)
    on_reject: dict[str, Any] = field(default_factory=dict)


VENDOR_VERIFICATION = VerificationTarget(
    collection=Collections.VENDORS,
    label="Vendor",
    id_label="Vendor ID",
    on_approve={"isOnline": True, "hasCompletedSetup": True},
    on_reject={"isOnline": False},
)

DELIVERY_VERIFICATION = VerificationTarget(
    collection=Collections.DELIVERY_PERSONS,
    label="Delivery person",
    id_label="Delivery person ID",
)


async def _get_existing(
    db: DocumentStore, collection: str, entity_id: str, label: str
) -> dict:
    document = await db.get_document(collection, entity_id)
    if document is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found"
        )
    return document


async def update_entity(
    db: DocumentStore,
    collection: str,
    entity_id: str | None,
    updates: dict[str, Any] | None,
    label: str,
) -> MessageResponse:
    """
    Merge a partial update into one document and stamp ``updatedAt``.

    Args:
        db: Document store
        collection: Collection holding the entity
        entity_id: Document id, required
        updates: Fields to merge into the document
        label: Human name of the entity used in messages, e.g. "Vendor"

    Returns:
        MessageResponse confirming the update
    """
    if not entity_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"{label} ID required"
        )

    try:
        await _get_existing(db, collection, entity_id, label)
        await db.update_document(
            collection, entity_id, {**(updates or {}), "updatedAt": utcnow()}
        )
        return MessageResponse(message=f"{label} updated")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating {label.lower()} {entity_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update {label.lower()}",
        )


async def suspend(
    db: DocumentStore,
    target: SuspensionTarget,
    entity_id: str | None,
    reason: str | None,
    notes: str | None = None,
    admin_id: str | None = None,
) -> SuspensionResponse:
    """Active -> Suspended. Rejects unknown ids and double suspension."""
    if not entity_id or not reason:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{target.id_label} and suspension reason are required",
        )

    admin_id = admin_id or "admin"
    try:
        current = await _get_existing(db, target.collection, entity_id, target.label)
        if current.get("isSuspended"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{target.label} is already suspended",
            )

        now = utcnow()
        updates = {
            "isSuspended": True,
            **{name: False for name in target.offline_flags},
            "suspensionReason": reason,
            "suspensionNotes": notes or "",
            "suspendedAt": now,
            "suspendedBy": admin_id,
            "updatedAt": now,
        }
        await db.update_document(target.collection, entity_id, updates)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error suspending {target.target_type} {entity_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to suspend {target.label.lower()}",
        )

    name = current.get(target.name_field) or ""
    logger.info(f"{target.label} {entity_id} suspended by {admin_id}: {reason}")
    await AdminLogService.record(
        db,
        action=target.suspended_action,
        target_id=entity_id,
        target_type=target.target_type,
        target_name=name,
        reason=reason,
        notes=notes or "",
        admin_id=admin_id,
    )

    return SuspensionResponse(
        message=f'{target.label} "{name}" has been suspended',
        data={
            target.id_key: entity_id,
            target.name_field: name,
            "suspensionReason": reason,
            "suspendedAt": iso(now),
        },
    )


async def reinstate(
    db: DocumentStore,
    target: SuspensionTarget,
    entity_id: str | None,
    admin_id: str | None = None,
) -> SuspensionResponse:
    """Suspended -> Active. Rejects unknown ids and entities not suspended."""
    if not entity_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{target.id_label} is required",
        )

    admin_id = admin_id or "admin"
    try:
        current = await _get_existing(db, target.collection, entity_id, target.label)
        if not current.get("isSuspended"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{target.label} is not suspended",
            )

        now = utcnow()
        await db.update_document(
            target.collection,
            entity_id,
            {
                "isSuspended": False,
                "suspensionReason": "",
                "suspensionNotes": "",
                "suspendedAt": None,
                "suspendedBy": "",
                "reinstatedAt": now,
                "reinstatedBy": admin_id,
                "updatedAt": now,
            },
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error reinstating {target.target_type} {entity_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to reinstate {target.label.lower()}",
        )

    name = current.get(target.name_field) or ""
    logger.info(f"{target.label} {entity_id} reinstated by {admin_id}")
    await AdminLogService.record(
        db,
        action=target.reinstated_action,
        target_id=entity_id,
        target_type=target.target_type,
        target_name=name,
        previous_reason=current.get("suspensionReason") or "",
        admin_id=admin_id,
    )

    return SuspensionResponse(
        message=f'{target.label} "{name}" has been reinstated',
        data={
            target.id_key: entity_id,
            target.name_field: name,
            "reinstatedAt": iso(now),
        },
    )


async def list_suspended(db: DocumentStore, target: SuspensionTarget) -> list[dict]:
    try:
        return await db.get_documents(
            target.collection, filters=[("isSuspended", "==", True)]
        )
    except Exception as e:
        logger.error(f"Error fetching suspended {target.target_type}s: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch suspended {target.label.lower()}s",
        )


async def apply_verification(
    db: DocumentStore,
    target: VerificationTarget,
    entity_id: str | None,
    action: str | None,
    notes: str | None = None,
) -> MessageResponse:
    """
    Approve or reject an onboarding entity.

    Rejected entities stay eligible for a later approval.
    """
    if not entity_id or not action:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{target.id_label} and action required",
        )
    try:
        verification_action = VerificationAction(action)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Action must be 'approve' or 'reject'",
        )

    now = utcnow()
    updates: dict[str, Any] = {
        "updatedAt": now,
        "verifiedAt": now,
        "verificationNotes": notes or "",
    }
    if verification_action == VerificationAction.APPROVE:
        updates.update(
            isVerified=True,
            verificationStatus=VerificationStatus.APPROVED.value,
            **target.on_approve,
        )
        outcome = "approved"
    else:
        updates.update(
            isVerified=False,
            verificationStatus=VerificationStatus.REJECTED.value,
            **target.on_reject,
        )
        outcome = "rejected"

    try:
        await _get_existing(db, target.collection, entity_id, target.label)
        await db.update_document(target.collection, entity_id, updates)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error verifying {target.label.lower()} {entity_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update {target.label.lower()} verification",
        )

    logger.info(f"{target.label} {entity_id} {outcome}")
    return MessageResponse(message=f"{target.label} {outcome}")
