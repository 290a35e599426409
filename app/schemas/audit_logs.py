from app.schemas.schemas import CamelModel


class AdminLogResponse(CamelModel):
    log_id: str
    action: str
    target_id: str
    target_type: str
    target_name: str
    reason: str
    notes: str
    admin_id: str
    previous_reason: str
    created_at: str
