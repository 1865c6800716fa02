"""
活动评论 API 路由，以及评论的表情回应。

- GET    /api/comments/campaign/<campaign_id>                  评论树 (可匿名)，每条评论附带表情回应
- POST   /api/comments                                        发表评论/回复 {campaignId, content, parentId?}
- GET    /api/comments/<comment_id>                           单条评论 (可匿名)
- PUT    /api/comments/<comment_id>                           修改自己的评论内容 {content}
- DELETE /api/comments/<comment_id>                           删除自己的评论 (软删除)
  以上三个接口同时挂在 /api/comments/comment/<comment_id> 下
- GET    /api/comments/<comment_id>/reactions                 评论的表情列表
- POST   /api/comments/<comment_id>/reactions/<emoji>         添加表情 (幂等)
- DELETE /api/comments/<comment_id>/reactions/<emoji>         删除表情，不存在返回 404
- POST   /api/comments/<comment_id>/reactions/<emoji>/toggle  切换表情

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required

from freepool import limiter
from freepool.models.interaction import TARGET_COMMENT, KIND_EMOJI, emoji_category
from freepool.routes import mutation_limit
from freepool.schemas import CommentCreateRequest, CommentUpdateRequest, parse_body
from freepool.services import comments as comment_service
from freepool.services.aggregator import get_aggregator
from freepool.services.mutation_gate import MutationGate
from freepool.utils.auth_utils import get_request_context
from freepool.utils.exceptions import NotFound

comments_bp = Blueprint('comments', __name__)


def _emoji_list(ctx, comment_id):
    return get_aggregator().read(ctx, TARGET_COMMENT, comment_id, (KIND_EMOJI,)).emoji_list()


@comments_bp.route('/campaign/<campaign_id>', methods=['GET'])
def get_campaign_comments(campaign_id):
    ctx = get_request_context()
    tree = comment_service.get_comment_tree(campaign_id, ctx)
    return jsonify({'success': True, 'data': tree}), 200


@comments_bp.route('', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def create_comment():
    ctx = get_request_context()
    payload = parse_body(CommentCreateRequest)
    comment = comment_service.create_comment(ctx, payload.campaign_id, payload.content, payload.parent_id)
    return jsonify({'success': True, 'data': comment.to_dict()}), 201


@comments_bp.route('/<comment_id>', methods=['GET'])
@comments_bp.route('/comment/<comment_id>', methods=['GET'])
def get_comment(comment_id):
    ctx = get_request_context()
    return jsonify({'success': True, 'data': comment_service.get_comment(comment_id, ctx)}), 200


@comments_bp.route('/<comment_id>', methods=['PUT'])
@comments_bp.route('/comment/<comment_id>', methods=['PUT'])
@jwt_required()
@limiter.limit(mutation_limit)
def update_comment(comment_id):
    ctx = get_request_context()
    payload = parse_body(CommentUpdateRequest)
    comment = comment_service.update_comment(ctx, comment_id, payload.content)
    return jsonify({'success': True, 'data': comment.to_dict()}), 200


@comments_bp.route('/<comment_id>', methods=['DELETE'])
@comments_bp.route('/comment/<comment_id>', methods=['DELETE'])
@jwt_required()
@limiter.limit(mutation_limit)
def delete_comment(comment_id):
    ctx = get_request_context()
    comment_service.delete_comment(ctx, comment_id)
    current_app.logger.info(f"用户 {ctx.user_id} 删除评论 {comment_id}")
    return jsonify({'success': True, 'data': {'message': 'Comment deleted successfully'}}), 200


# --- 评论表情回应 ---

@comments_bp.route('/<comment_id>/reactions', methods=['GET'])
def get_comment_reactions(comment_id):
    ctx = get_request_context()
    return jsonify({'success': True, 'data': _emoji_list(ctx, comment_id)}), 200


@comments_bp.route('/<comment_id>/reactions/<emoji>', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def add_comment_reaction(comment_id, emoji):
    ctx = get_request_context()
    MutationGate().add(ctx, TARGET_COMMENT, comment_id, emoji_category(emoji))
    return jsonify({
        'success': True,
        'data': {
            'message': 'Reaction added successfully',
            'reactions': _emoji_list(ctx, comment_id),
        }
    }), 200


@comments_bp.route('/<comment_id>/reactions/<emoji>', methods=['DELETE'])
@jwt_required()
@limiter.limit(mutation_limit)
def remove_comment_reaction(comment_id, emoji):
    ctx = get_request_context()
    if not MutationGate().remove(ctx, TARGET_COMMENT, comment_id, emoji_category(emoji)):
        raise NotFound('Reaction not found')
    return jsonify({
        'success': True,
        'data': {
            'message': 'Reaction removed successfully',
            'reactions': _emoji_list(ctx, comment_id),
        }
    }), 200


@comments_bp.route('/<comment_id>/reactions/<emoji>/toggle', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def toggle_comment_reaction(comment_id, emoji):
    ctx = get_request_context()
    result = MutationGate().toggle(ctx, TARGET_COMMENT, comment_id, emoji_category(emoji))
    return jsonify({
        'success': True,
        'data': {
            'state': result.state,
            'userReacted': result.active,
            'reactions': _emoji_list(ctx, comment_id),
        }
    }), 200
