"""
用户维度的互动查询：收藏列表、参与列表 (附带活动信息和是否过期)，以及个人互动统计。
"""
from freepool import db
from freepool.models.campaign import Campaign
from freepool.models.interaction import (
    Interaction, TARGET_CAMPAIGN, KIND_REACTION, KIND_BOOKMARK, KIND_PARTICIPATION,
)
from freepool.services.comments import count_user_comments
from freepool.utils.exceptions import Unauthorized


def _require_subject(ctx):
    if ctx is None or not ctx.is_authenticated:
        raise Unauthorized()


def get_user_campaign_interactions(ctx, kind):
    """用户某类交互涉及的未删除活动，按交互时间倒序"""
    _require_subject(ctx)
    rows = (
        db.session.query(Interaction, Campaign)
        .join(Campaign, Campaign.id == Interaction.target_id)
        .filter(
            Interaction.user_id == ctx.user_id,
            Interaction.target_type == TARGET_CAMPAIGN,
            Interaction.kind == kind,
            Campaign.deleted_at.is_(None),
        )
        .order_by(Interaction.created_at.desc())
        .all()
    )
    items = []
    for interaction, campaign in rows:
        item = interaction.to_dict()
        item['campaign'] = campaign.to_dict()
        item['isExpired'] = campaign.is_expired
        items.append(item)
    return items


def get_user_campaign_ids(ctx, kind):
    _require_subject(ctx)
    return Interaction.get_user_target_ids(ctx.user_id, TARGET_CAMPAIGN, kind)


def get_user_interaction(ctx, campaign_id, kind):
    _require_subject(ctx)
    return Interaction.find(ctx.user_id, TARGET_CAMPAIGN, campaign_id, kind)


def get_user_summary(ctx):
    """个人中心统计：收藏数、参与数、反馈数、评论数"""
    _require_subject(ctx)
    return {
        'bookmarks': Interaction.count_for_user(ctx.user_id, TARGET_CAMPAIGN, KIND_BOOKMARK),
        'participations': Interaction.count_for_user(ctx.user_id, TARGET_CAMPAIGN, KIND_PARTICIPATION),
        'reactions': Interaction.count_for_user(ctx.user_id, TARGET_CAMPAIGN, KIND_REACTION),
        'comments': count_user_comments(ctx.user_id),
    }
