from fastapi import APIRouter, Depends, Query

from app.database.database import DocumentStore, get_db
from app.schemas.audit_logs import AdminLogResponse
from app.schemas.schemas import ResponseSchema
from app.services.audit_log_service import AdminLogService

router = APIRouter(prefix="/api/logs", tags=["Admin Logs"])


@router.get("")
async def get_logs(
    db: DocumentStore = Depends(get_db),
    action: str | None = Query(None),
    target_type: str | None = Query(None, alias="targetType"),
    limit: int = Query(100, ge=1),
) -> ResponseSchema[list[AdminLogResponse]]:
    logs = await AdminLogService.get_logs(
        db=db, action=action, target_type=target_type, limit=limit
    )
    return ResponseSchema(data=logs)
