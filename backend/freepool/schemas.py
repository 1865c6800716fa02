"""
请求体校验 (pydantic)

路由在边界处用这些模型校验 JSON 请求体，校验失败统一抛出 ValidationFailed (400)。
字段名使用前端的 camelCase 别名。
"""
from typing import Annotated, List, Literal, Optional

from flask import request
from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError, field_validator

from freepool.utils.exceptions import ValidationFailed

ObjectId = Annotated[str, Field(min_length=1, max_length=64)]

ReactionType = Literal['still_works', 'expired', 'info_incorrect']
TargetType = Literal['campaign', 'comment']
InteractionKind = Literal['reaction', 'emoji', 'bookmark', 'participation']

COMMENT_MAX_LENGTH = 2000
NOTES_MAX_LENGTH = 1000


class RequestSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra='ignore')


class ReactionRequest(RequestSchema):
    campaign_id: ObjectId = Field(alias='campaignId')
    type: ReactionType


class CampaignIdsRequest(RequestSchema):
    """批量接口：ID 列表，去重与截断由 Aggregator 完成"""
    campaign_ids: List[ObjectId] = Field(default_factory=list, alias='campaignIds')


class EngagementBatchRequest(RequestSchema):
    target_type: TargetType = Field(default='campaign', alias='targetType')
    ids: List[ObjectId] = Field(default_factory=list)
    kinds: Optional[List[InteractionKind]] = None

    @field_validator('kinds')
    @classmethod
    def kinds_not_empty(cls, value):
        if value is not None and not value:
            raise ValueError('kinds must not be empty')
        return value


class BookmarkRequest(RequestSchema):
    campaign_id: ObjectId = Field(alias='campaignId')


class ParticipationRequest(RequestSchema):
    campaign_id: ObjectId = Field(alias='campaignId')
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)


class ParticipationToggleRequest(RequestSchema):
    notes: Optional[str] = Field(default=None, max_length=NOTES_MAX_LENGTH)


class CommentCreateRequest(RequestSchema):
    campaign_id: ObjectId = Field(alias='campaignId')
    content: str = Field(min_length=1, max_length=COMMENT_MAX_LENGTH)
    parent_id: Optional[ObjectId] = Field(default=None, alias='parentId')


class CommentUpdateRequest(RequestSchema):
    content: str = Field(min_length=1, max_length=COMMENT_MAX_LENGTH)


class MarkUsefulRequest(RequestSchema):
    is_useful: StrictBool = Field(alias='isUseful')


def _format_error(error: ValidationError):
    first = error.errors()[0]
    location = '.'.join(str(part) for part in first.get('loc', ()))
    if location:
        return f"{location}: {first['msg']}"
    return first['msg']


def parse_body(schema, allow_empty=False):
    """
    把当前请求的 JSON 请求体解析为 schema 实例。

    allow_empty=True 时缺少请求体按空对象处理 (用于可选参数的切换接口)。
    """
    data = request.get_json(silent=True)
    if data is None and allow_empty:
        data = {}
    if not isinstance(data, dict):
        raise ValidationFailed('Request body must be a JSON object')
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(_format_error(e))
