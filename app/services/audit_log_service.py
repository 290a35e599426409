from fastapi import HTTPException, status

from app.database.database import Collections, DocumentStore
from app.schemas.audit_logs import AdminLogResponse
from app.schemas.status_schema import AdminAction
from app.utils.logger_config import setup_logger
from app.utils.utils import to_iso, utcnow

logger = setup_logger()


class AdminLogService:
    @staticmethod
    async def record(
        db: DocumentStore,
        *,
        action: AdminAction,
        target_id: str,
        target_type: str,
        target_name: str,
        admin_id: str,
        reason: str | None = None,
        notes: str | None = None,
        previous_reason: str | None = None,
    ) -> str | None:
        """
        Append an admin action to the log collection.

        The write is best-effort: the admin action it describes has already
        been committed, so a failure here is logged and None is returned.
        """
        entry = {
            "action": action.value,
            "targetId": target_id,
            "targetType": target_type,
            "targetName": target_name,
            "adminId": admin_id,
            "createdAt": utcnow(),
        }
        if reason is not None:
            entry["reason"] = reason
        if notes is not None:
            entry["notes"] = notes
        if previous_reason is not None:
            entry["previousReason"] = previous_reason

        try:
            return await db.add_document(Collections.ADMIN_LOGS, entry)
        except Exception as e:
            logger.error(f"Failed to write admin log {action.value} for {target_id}: {str(e)}")
            return None

    @staticmethod
    async def get_logs(
        db: DocumentStore,
        *,
        action: str | None = None,
        target_type: str | None = None,
        limit: int = 100,
    ) -> list[AdminLogResponse]:
        """
        Query admin logs, newest first.

        Args:
            db: Document store
            action: Filter by action code, e.g. VENDOR_SUSPENDED
            target_type: Filter by target type (vendor, deliveryPerson)
            limit: Max number of logs to return
        Returns:
            List of AdminLogResponse entries
        """
        try:
            documents = await db.get_documents(
                Collections.ADMIN_LOGS, order_by="createdAt", descending=True
            )
        except Exception as e:
            logger.error(f"Error fetching admin logs: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch admin logs",
            )

        # Filtered in memory to avoid composite index requirements
        if action:
            documents = [d for d in documents if d.get("action") == action]
        if target_type:
            documents = [d for d in documents if d.get("targetType") == target_type]

        return [
            AdminLogResponse(
                log_id=data["id"],
                action=data.get("action") or "",
                target_id=data.get("targetId") or "",
                target_type=data.get("targetType") or "",
                target_name=data.get("targetName") or "",
                reason=data.get("reason") or "",
                notes=data.get("notes") or "",
                admin_id=data.get("adminId") or "",
                previous_reason=data.get("previousReason") or "",
                created_at=to_iso(data.get("createdAt")),
            )
            for data in documents[:limit]
        ]
