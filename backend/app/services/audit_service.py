# app/services/audit_service.py

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logger import logger
from app.db.models import AuditLog, User


class AuditService:
    """
    Service for the chamber audit trail (audit_logs table).
    Writes are best-effort: a failed audit insert never fails the request.
    """

    def log_action(
        self,
        db: Session,
        user_id: Optional[UUID],
        action: str,
        entity: Optional[str] = None,
        entity_id: Optional[Any] = None,
        metadata: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[AuditLog]:
        try:
            entry = AuditLog(
                user_id=user_id,
                action=action,
                entity=entity,
                entity_id=str(entity_id) if entity_id is not None else None,
                details=metadata or {},
                ip_address=ip_address or "unknown",
            )
            db.add(entry)
            db.commit()
            return entry
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to write audit log {action}: {str(e)}")
            return None

    def get_chamber_logs(self, db: Session, chamber_id: UUID, limit: int = 100) -> List[AuditLog]:
        """Logs written by users whose home chamber is ``chamber_id``, newest first."""
        return (
            db.query(AuditLog)
            .join(User, AuditLog.user_id == User.id)
            .filter(User.chamber_id == chamber_id)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .all()
        )


audit_service = AuditService()
