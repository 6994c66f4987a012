"""
Canonical cache encoding for comment payloads.

Every cache entry written by the store, whether a single comment or a
per-video list, goes through this module: the model is dumped in JSON mode
and encoded with orjson using sorted keys, so equal records always produce
byte-identical payloads.  Decoding validates the payload back into the
pydantic model; any failure in either direction is raised as
``SerializationError``.
"""
from typing import TypeVar

import orjson
from pydantic import BaseModel, ValidationError

from comment_svc.errors import SerializationError
from comment_svc.schemas import Comment, CommentList

M = TypeVar("M", bound=BaseModel)

_DUMPS_OPTIONS = orjson.OPT_SORT_KEYS


def _encode(model: BaseModel) -> bytes:
    try:
        return orjson.dumps(model.model_dump(mode="json"), option=_DUMPS_OPTIONS)
    except (orjson.JSONEncodeError, TypeError, ValueError) as exc:
        raise SerializationError(
            f"Could not encode {type(model).__name__}: {exc}"
        ) from exc


def _decode(payload: bytes | str, model_cls: type[M]) -> M:
    try:
        data = orjson.loads(payload)
    except orjson.JSONDecodeError as exc:
        raise SerializationError(
            f"Cache payload is not valid for {model_cls.__name__}: {exc}"
        ) from exc
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise SerializationError(
            f"Cache payload does not match {model_cls.__name__}: {exc}"
        ) from exc


def encode_comment(comment: Comment) -> bytes:
    return _encode(comment)


def decode_comment(payload: bytes | str) -> Comment:
    return _decode(payload, Comment)


def encode_comment_list(comments: CommentList) -> bytes:
    return _encode(comments)


def decode_comment_list(payload: bytes | str) -> CommentList:
    return _decode(payload, CommentList)
