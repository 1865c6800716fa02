"""
活动表情回应 API 路由。
同一用户可以对同一活动持有多个不同的表情，每个表情最多一条。

- GET    /api/campaigns/<campaign_id>/emoji-reactions                  表情列表 [{emoji, count, userReacted}]
- POST   /api/campaigns/<campaign_id>/emoji-reactions/<emoji>          添加表情，已存在返回 409
- DELETE /api/campaigns/<campaign_id>/emoji-reactions/<emoji>          删除表情，不存在返回 404
- POST   /api/campaigns/<campaign_id>/emoji-reactions/<emoji>/toggle   切换表情
- POST   /api/campaigns/emoji-reactions/batch                          批量获取表情列表，按活动ID返回

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from freepool import limiter
from freepool.models.interaction import TARGET_CAMPAIGN, KIND_EMOJI, emoji_category
from freepool.routes import mutation_limit
from freepool.schemas import CampaignIdsRequest, parse_body
from freepool.services.aggregator import get_aggregator
from freepool.services.mutation_gate import MutationGate
from freepool.utils.auth_utils import get_request_context
from freepool.utils.exceptions import Conflict, NotFound

emoji_reactions_bp = Blueprint('emoji_reactions', __name__)


def _emoji_list(ctx, campaign_id):
    return get_aggregator().read(ctx, TARGET_CAMPAIGN, campaign_id, (KIND_EMOJI,)).emoji_list()


@emoji_reactions_bp.route('/<campaign_id>/emoji-reactions', methods=['GET'])
def get_emoji_reactions(campaign_id):
    ctx = get_request_context()
    return jsonify({'success': True, 'data': _emoji_list(ctx, campaign_id)}), 200


@emoji_reactions_bp.route('/<campaign_id>/emoji-reactions/<emoji>', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def add_emoji_reaction(campaign_id, emoji):
    ctx = get_request_context()
    _, created = MutationGate().add(ctx, TARGET_CAMPAIGN, campaign_id, emoji_category(emoji))
    if not created:
        raise Conflict('Already reacted with this emoji')
    return jsonify({
        'success': True,
        'data': {
            'message': 'Reaction added successfully',
            'reactions': _emoji_list(ctx, campaign_id),
        }
    }), 200


@emoji_reactions_bp.route('/<campaign_id>/emoji-reactions/<emoji>', methods=['DELETE'])
@jwt_required()
@limiter.limit(mutation_limit)
def remove_emoji_reaction(campaign_id, emoji):
    ctx = get_request_context()
    if not MutationGate().remove(ctx, TARGET_CAMPAIGN, campaign_id, emoji_category(emoji)):
        raise NotFound('Reaction not found')
    return jsonify({
        'success': True,
        'data': {
            'message': 'Reaction removed successfully',
            'reactions': _emoji_list(ctx, campaign_id),
        }
    }), 200


@emoji_reactions_bp.route('/<campaign_id>/emoji-reactions/<emoji>/toggle', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def toggle_emoji_reaction(campaign_id, emoji):
    ctx = get_request_context()
    result = MutationGate().toggle(ctx, TARGET_CAMPAIGN, campaign_id, emoji_category(emoji))
    return jsonify({
        'success': True,
        'data': {
            'state': result.state,
            'userReacted': result.active,
            'reactions': _emoji_list(ctx, campaign_id),
        }
    }), 200


@emoji_reactions_bp.route('/emoji-reactions/batch', methods=['POST'])
def get_batch_emoji_reactions():
    """请求体: {"campaignIds": [...]}，返回 {campaignId: [{emoji, count, userReacted}]}"""
    ctx = get_request_context()
    payload = parse_body(CampaignIdsRequest)
    results = get_aggregator().read_batch(ctx, TARGET_CAMPAIGN, payload.campaign_ids, (KIND_EMOJI,))
    return jsonify({
        'success': True,
        'data': {result.object_id: result.emoji_list() for result in results}
    }), 200
