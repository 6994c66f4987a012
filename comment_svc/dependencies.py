from fastapi import Request

from comment_svc.services.comment_service import CommentStore


def get_store(request: Request) -> CommentStore:
    """
    FastAPI dependency returning the ``CommentStore`` built in ``lifespan``.

    Usage in a router::

        @router.get("/comments/{comment_id}")
        async def get_comment(comment_id: str, store: CommentStore = Depends(get_store)):
            ...

    Tests replace it through ``app.dependency_overrides[get_store]``.
    """
    return request.app.state.store
