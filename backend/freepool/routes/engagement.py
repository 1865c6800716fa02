"""
通用互动聚合 API 路由

- POST /api/engagement/batch  请求体 {targetType, ids, kinds?}，返回每个对象的聚合结果列表
- GET  /api/engagement/me     当前用户的互动统计 (需登录)
"""
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from freepool.models.interaction import ALLOWED_KINDS
from freepool.schemas import EngagementBatchRequest, parse_body
from freepool.services.aggregator import get_aggregator
from freepool.services.engagement import get_user_summary
from freepool.utils.auth_utils import get_request_context

engagement_bp = Blueprint('engagement', __name__)


@engagement_bp.route('/batch', methods=['POST'])
def get_batch_engagement():
    ctx = get_request_context()
    payload = parse_body(EngagementBatchRequest)
    # 未指定 kinds 时返回该对象类型支持的全部交互
    kinds = payload.kinds or ALLOWED_KINDS[payload.target_type]
    results = get_aggregator().read_batch(ctx, payload.target_type, payload.ids, kinds)
    return jsonify({
        'success': True,
        'data': [result.to_dict() for result in results]
    }), 200


@engagement_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_engagement():
    ctx = get_request_context()
    return jsonify({'success': True, 'data': get_user_summary(ctx)}), 200
