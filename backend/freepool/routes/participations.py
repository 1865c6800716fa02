"""
活动参与记录 API 路由 (均需登录)
用户标记自己已参与某活动，可附带备注。

- GET    /api/participations                 当前用户的参与列表 (附带活动信息和 isExpired)
- POST   /api/participations                 标记参与 (幂等)，请求体 {campaignId, notes?}
- GET    /api/participations/ids             当前用户参与的活动ID列表
- GET    /api/participations/<campaign_id>   是否已参与
- DELETE /api/participations/<campaign_id>   取消参与，未参与返回 404
- POST   /api/participations/<campaign_id>   切换参与状态，可选请求体 {notes}

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required

from freepool import limiter
from freepool.models.interaction import TARGET_CAMPAIGN, KIND_PARTICIPATION, CATEGORY_PARTICIPATION
from freepool.routes import mutation_limit
from freepool.schemas import ParticipationRequest, ParticipationToggleRequest, parse_body
from freepool.services.engagement import get_user_campaign_interactions, get_user_campaign_ids, get_user_interaction
from freepool.services.mutation_gate import MutationGate
from freepool.utils.auth_utils import get_request_context
from freepool.utils.exceptions import NotFound

participations_bp = Blueprint('participations', __name__)


@participations_bp.route('', methods=['GET'])
@jwt_required()
def get_participations():
    ctx = get_request_context()
    participations = get_user_campaign_interactions(ctx, KIND_PARTICIPATION)
    return jsonify({'success': True, 'data': participations, 'count': len(participations)}), 200


@participations_bp.route('', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def create_participation():
    ctx = get_request_context()
    payload = parse_body(ParticipationRequest)
    participation, created = MutationGate().add(
        ctx, TARGET_CAMPAIGN, payload.campaign_id, CATEGORY_PARTICIPATION, notes=payload.notes
    )
    if created:
        current_app.logger.info(f"用户 {ctx.user_id} 标记参与活动 {payload.campaign_id}")
    return jsonify({'success': True, 'data': participation.to_dict() if participation else None}), 200


@participations_bp.route('/ids', methods=['GET'])
@jwt_required()
def get_participation_ids():
    ctx = get_request_context()
    return jsonify({'success': True, 'data': get_user_campaign_ids(ctx, KIND_PARTICIPATION)}), 200


@participations_bp.route('/<campaign_id>', methods=['GET'])
@jwt_required()
def check_participation(campaign_id):
    ctx = get_request_context()
    participation = get_user_interaction(ctx, campaign_id, KIND_PARTICIPATION)
    return jsonify({
        'success': True,
        'data': {
            'participated': participation is not None,
            'participation': participation.to_dict() if participation else None,
        }
    }), 200


@participations_bp.route('/<campaign_id>', methods=['DELETE'])
@jwt_required()
@limiter.limit(mutation_limit)
def remove_participation(campaign_id):
    ctx = get_request_context()
    if not MutationGate().remove(ctx, TARGET_CAMPAIGN, campaign_id, CATEGORY_PARTICIPATION):
        raise NotFound('Participation not found')
    return jsonify({'success': True, 'data': {'message': 'Participation removed successfully'}}), 200


@participations_bp.route('/<campaign_id>', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def toggle_participation(campaign_id):
    ctx = get_request_context()
    payload = parse_body(ParticipationToggleRequest, allow_empty=True)
    result = MutationGate().toggle(ctx, TARGET_CAMPAIGN, campaign_id, CATEGORY_PARTICIPATION, notes=payload.notes)
    return jsonify({
        'success': True,
        'data': {
            'state': result.state,
            'participated': result.active,
            'participation': result.interaction.to_dict() if result.interaction else None,
        }
    }), 200
