from datetime import date
from typing import Any, Dict, Optional

from loguru import logger

from parkwell.application.repositories import AbstractAuditLogRepository, ListQuery
from parkwell.application.services.date_range import day_bounds
from parkwell.domain.entities import AuditLog, Page


class AuditService:
    def __init__(self, audit_log_repo: AbstractAuditLogRepository):
        self.audit_log_repo = audit_log_repo

    async def record(
        self,
        action: str,
        user_id: Optional[int] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """Stage an audit row in the caller's transaction; the caller commits."""
        logger.debug(f"Audit: {action} ({entity_type} {entity_id}) by user {user_id}")
        return await self.audit_log_repo.add(AuditLog(
            action=action,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        ))

    async def list_logs(
        self,
        query: ListQuery,
        user_id: Optional[int] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page[AuditLog]:
        start, end = day_bounds(start_date, end_date)
        return await self.audit_log_repo.list(query, {
            "user_id": user_id,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "start": start,
            "end": end,
        })
