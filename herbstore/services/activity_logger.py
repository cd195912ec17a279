"""
Audit trail for logins, logouts, OTP events and unhandled errors
"""

import json
import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from herbstore.models.activity_log import ActivityLog
from herbstore.utils.request_info import client_ip, user_agent

logger = logging.getLogger(__name__)

class ActivityLogger:
    """Writes one audit row per call; a failed write is logged, not raised"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _encode_body(body: Optional[dict]) -> Optional[str]:
        if not body:
            return None
        try:
            return json.dumps(body, default=str)
        except (TypeError, ValueError):
            return str(body)

    async def record(
        self,
        request: Request,
        status_code: int,
        principal_type: Optional[str] = None,
        principal_id: Optional[int] = None,
        body: Optional[dict] = None,
        error_message: Optional[str] = None,
    ) -> Optional[ActivityLog]:
        """Store who called which endpoint and how it ended.

        Commits the session it was given, so call it once the request's own
        work is committed.
        """
        entry = ActivityLog(
            endpoint=str(request.url.path),
            method=request.method,
            status_code=status_code,
            principal_type=principal_type,
            principal_id=principal_id,
            ip_address=client_ip(request),
            user_agent=user_agent(request),
            request_body=self._encode_body(body),
            error_message=error_message,
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except Exception as e:
            logger.error(f"Could not write audit entry for {request.method} {request.url.path}: {e}")
            self.db.rollback()
            return None
        return entry

    def recent(self, limit: int = 100, principal_type: Optional[str] = None) -> list[ActivityLog]:
        """Newest entries first, optionally only those of one principal type"""
        query = self.db.query(ActivityLog)
        if principal_type:
            query = query.filter(ActivityLog.principal_type == principal_type)
        return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()
