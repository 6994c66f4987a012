from fastapi import APIRouter, Depends, Request
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from comment_svc.database import get_db
from comment_svc.models import CommentRecord
from comment_svc.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])

@router.get("", response_model=MetricsResponse)
async def get_metrics(request: Request, db: AsyncSession = Depends(get_db)):

    total_comments = (await db.execute(select(func.count()).select_from(CommentRecord))).scalar_one()

    cache = getattr(request.app.state, "cache", None)

    return MetricsResponse(
        total_comments=total_comments,
        cache_info=cache.stats if cache is not None else {},
    )
