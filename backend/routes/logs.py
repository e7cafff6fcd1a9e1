# backend/routes/logs.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from database import get_db
from models.log import Log
from schemas.log import LogPage
from schemas.user import TokenData
from utils.tokenJWT import require_admin

router = APIRouter(prefix="/api/logs", tags=["Logs"])

@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Filter by action (substring)"),
    user_id: Optional[int] = Query(None, description="Filter by user ID"),
    resource: Optional[str] = Query(None, description="Filter by resource"),
    status: Optional[str] = Query(None, description="Filter by status (SUCCESS/FAIL)"),
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_admin),
):
    query = db.query(Log)

    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if resource:
        query = query.filter(Log.resource == resource)
    if status:
        query = query.filter(Log.status == status)

    # Newest first
    query = query.order_by(Log.ts.desc(), Log.id.desc())

    total = query.count()
    logs = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": logs,
        "total": total,
        "page": page,
        "page_size": page_size,
    }
