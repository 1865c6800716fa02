"""
活动快速反馈 API 路由。
用户对活动给出 "仍可用 / 已失效 / 信息有误" 三种反馈之一，每个用户对每个活动只保留一条。

- POST   /api/reactions                  设置或替换反馈，返回反馈和最新统计
- GET    /api/reactions/<campaign_id>    反馈统计 + 当前用户的反馈 (可匿名)
- DELETE /api/reactions/<campaign_id>    删除当前用户的反馈
- POST   /api/reactions/batch            批量获取统计，按活动ID返回

反馈变化后异步重新计算活动的待核实标记。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required

from freepool import limiter
from freepool.models.interaction import TARGET_CAMPAIGN, KIND_REACTION
from freepool.routes import mutation_limit
from freepool.schemas import ReactionRequest, CampaignIdsRequest, parse_body
from freepool.services.aggregator import get_aggregator, get_user_reaction
from freepool.services.mutation_gate import MutationGate
from freepool.services.verification import queue_verification_refresh
from freepool.utils.auth_utils import get_request_context
from freepool.utils.exceptions import NotFound

reactions_bp = Blueprint('reactions', __name__)


@reactions_bp.route('', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def set_reaction():
    ctx = get_request_context()
    payload = parse_body(ReactionRequest)

    reaction = MutationGate().set_reaction(ctx, payload.campaign_id, payload.type)
    current_app.logger.info(f"用户 {ctx.user_id} 对活动 {payload.campaign_id} 反馈: {payload.type}")
    queue_verification_refresh(payload.campaign_id)

    stats = get_aggregator().read(ctx, TARGET_CAMPAIGN, payload.campaign_id, (KIND_REACTION,)).reaction_stats()
    return jsonify({
        'success': True,
        'data': {
            'reaction': reaction.to_dict() if reaction else None,
            'stats': stats,
        }
    }), 200


@reactions_bp.route('/<campaign_id>', methods=['GET'])
def get_reactions(campaign_id):
    ctx = get_request_context()
    result = get_aggregator().read(ctx, TARGET_CAMPAIGN, campaign_id, (KIND_REACTION,))
    user_reaction = get_user_reaction(campaign_id, ctx)
    return jsonify({
        'success': True,
        'data': {
            'stats': result.reaction_stats(),
            'userReaction': user_reaction.to_dict() if user_reaction else None,
        }
    }), 200


@reactions_bp.route('/<campaign_id>', methods=['DELETE'])
@jwt_required()
@limiter.limit(mutation_limit)
def remove_reaction(campaign_id):
    ctx = get_request_context()
    if not MutationGate().clear_reaction(ctx, campaign_id):
        raise NotFound('Reaction not found')

    queue_verification_refresh(campaign_id)
    stats = get_aggregator().read(ctx, TARGET_CAMPAIGN, campaign_id, (KIND_REACTION,)).reaction_stats()
    return jsonify({
        'success': True,
        'data': {
            'message': 'Reaction removed successfully',
            'stats': stats,
        }
    }), 200


@reactions_bp.route('/batch', methods=['POST'])
def get_batch_reactions():
    """
    批量获取多个活动的反馈统计 (列表页使用)

    请求体: {"campaignIds": [...]}，超过上限的部分被忽略
    返回: {campaignId: {stats, userReaction}}，userReaction 为反馈类型或 null
    """
    ctx = get_request_context()
    payload = parse_body(CampaignIdsRequest)

    results = get_aggregator().read_batch(ctx, TARGET_CAMPAIGN, payload.campaign_ids, (KIND_REACTION,))
    data = {
        result.object_id: {
            'stats': result.reaction_stats(),
            'userReaction': result.caller_category(KIND_REACTION),
        }
        for result in results
    }
    return jsonify({'success': True, 'data': data}), 200
