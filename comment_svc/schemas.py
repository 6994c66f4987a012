from pydantic import BaseModel, ConfigDict, Field


# --- Comment ---

class CommentBase(BaseModel):
    video_id: str = Field(max_length=255)
    user: str = Field(max_length=255)
    content: str


class WriteRequest(CommentBase):
    video_id: str = Field(min_length=1, max_length=255)
    user: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)


class Comment(CommentBase):
    id: str
    date_posted: str
    likes: int = Field(0, ge=0)
    dislikes: int = Field(0, ge=0)
    # Also the cached payload shape: unknown keys are a decode error, not data.
    model_config = ConfigDict(frozen=True, extra="forbid")


class CommentList(BaseModel):
    video_id: str
    comments: list[Comment]
    model_config = ConfigDict(extra="forbid")


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_comments: int
    cache_info: dict = {}
