from fastapi import APIRouter, Depends

from comment_svc.dependencies import get_store
from comment_svc.schemas import Comment, CommentList, WriteRequest
from comment_svc.services.comment_service import CommentStore

router = APIRouter(prefix="/api/v1", tags=["comments"])

@router.get("/videos/{video_id}/comments", response_model=CommentList)
async def list_comments(video_id: str, store: CommentStore = Depends(get_store)):
    return await store.list_by_video(video_id)

@router.get("/comments/{comment_id}", response_model=Comment)
async def get_comment(comment_id: str, store: CommentStore = Depends(get_store)):
    return await store.get_single(comment_id)

@router.post("/comments", status_code=201, response_model=Comment)
async def write_comment(data: WriteRequest, store: CommentStore = Depends(get_store)):
    return await store.write(data)
