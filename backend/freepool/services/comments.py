"""
活动评论服务

- get_comment_tree: 活动下未删除的评论，按创建时间倒序组装成树，每条评论附带表情回应汇总 (一次批量聚合)
- create_comment: 发表评论/回复，回复的父评论必须存在且属于同一活动
- get_comment: 获取单条未删除的评论，附带表情回应汇总
- update_comment: 修改评论内容，只有作者本人可以修改，内容去除首尾空白后不能为空
- delete_comment: 软删除，只有作者本人可以删除
- mark_useful: 管理员标记/取消标记"有用"

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
import logging
from datetime import datetime

from freepool import db
from freepool.models.campaign import Campaign
from freepool.models.comment import Comment
from freepool.models.interaction import TARGET_COMMENT, KIND_EMOJI
from freepool.services.aggregator import get_aggregator
from freepool.utils.exceptions import Forbidden, NotFound, Unauthorized, ValidationFailed

logger = logging.getLogger(__name__)


def get_comment_tree(campaign_id, ctx=None):
    comments = (
        Comment.query
        .filter(Comment.campaign_id == campaign_id, Comment.deleted_at.is_(None))
        .order_by(Comment.created_at.desc())
        .all()
    )
    if not comments:
        return []

    reactions = get_aggregator().read_all(ctx, TARGET_COMMENT, [c.id for c in comments], (KIND_EMOJI,))

    nodes = {}
    for comment in comments:
        node = comment.to_dict()
        node['reactions'] = reactions[comment.id].emoji_list()
        node['replies'] = []
        nodes[comment.id] = node

    roots = []
    for comment in comments:
        node = nodes[comment.id]
        if comment.parent_id:
            # 父评论已删除时，回复不再显示
            parent = nodes.get(comment.parent_id)
            if parent is not None:
                parent['replies'].append(node)
        else:
            roots.append(node)
    return roots


def create_comment(ctx, campaign_id, content, parent_id=None):
    if ctx is None or not ctx.is_authenticated:
        raise Unauthorized()

    if Campaign.get_active(campaign_id) is None:
        raise NotFound(f'Campaign with ID "{campaign_id}" not found')

    if parent_id:
        parent = Comment.get_active(parent_id)
        if parent is None:
            raise NotFound(f'Parent comment with ID "{parent_id}" not found')
        if parent.campaign_id != campaign_id:
            raise ValidationFailed('Parent comment must belong to the same campaign')

    comment = Comment(
        campaign_id=campaign_id,
        user_id=ctx.user_id,
        content=content,
        parent_id=parent_id or None,
        is_marked_useful=False,
    )
    try:
        db.session.add(comment)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("创建评论失败: campaign_id=%s, user_id=%s, error=%s", campaign_id, ctx.user_id, e)
        raise e
    logger.info("用户 %s 在活动 %s 发表评论 %s", ctx.user_id, campaign_id, comment.id)
    return comment


def get_comment(comment_id, ctx=None):
    comment = Comment.get_active(comment_id)
    if comment is None:
        raise NotFound('Comment not found')
    data = comment.to_dict()
    data['reactions'] = get_aggregator().read(ctx, TARGET_COMMENT, comment.id, (KIND_EMOJI,)).emoji_list()
    return data


def update_comment(ctx, comment_id, content):
    if ctx is None or not ctx.is_authenticated:
        raise Unauthorized()

    content = (content or '').strip()
    if not content:
        raise ValidationFailed('Comment content cannot be empty')

    comment = Comment.get_active(comment_id)
    if comment is None:
        raise NotFound('Comment not found')
    if comment.user_id != ctx.user_id:
        raise Forbidden('Only the comment author can edit the content')

    try:
        comment.content = content
        comment.updated_at = datetime.utcnow()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("修改评论 %s 失败: %s", comment_id, e)
        raise e
    return comment


def delete_comment(ctx, comment_id):
    if ctx is None or not ctx.is_authenticated:
        raise Unauthorized()

    comment = Comment.get_active(comment_id)
    if comment is None:
        raise NotFound('Comment not found')
    if comment.user_id != ctx.user_id:
        raise Forbidden('Only the comment author can delete this comment')

    try:
        comment.deleted_at = datetime.utcnow()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("删除评论 %s 失败: %s", comment_id, e)
        raise e
    return True


def mark_useful(comment_id, is_useful):
    comment = Comment.get_active(comment_id)
    if comment is None:
        raise NotFound('Comment not found')
    try:
        comment.is_marked_useful = is_useful
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("标记评论 %s 失败: %s", comment_id, e)
        raise e
    return comment


def count_user_comments(user_id):
    return Comment.query.filter(Comment.user_id == user_id, Comment.deleted_at.is_(None)).count()
