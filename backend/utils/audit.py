import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session
from models.log import LOG_FAIL, LOG_SUCCESS, Log

logger = logging.getLogger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


def write_log(db: Session, *, user_id, action, resource, status=LOG_SUCCESS, ip=None, meta=None):
    """Persist an audit entry and mirror it to the application log."""
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    db.commit()

    level = logging.WARNING if status == LOG_FAIL else logging.INFO
    logger.log(level, "%s %s %s user=%s meta=%s", resource, action, status, user_id, meta or {})
