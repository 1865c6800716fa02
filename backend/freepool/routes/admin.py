"""
管理员 API 路由 (均需 JWT 中 is_admin 声明)

- GET  /api/admin/verification-needed         待核实活动列表 (附带反馈统计)
- GET  /api/admin/verification-needed/count   待核实活动数量
- POST /api/admin/campaigns/<id>/verify       标记活动已核实，清除待核实标记
- POST /api/admin/comments/<id>/mark-useful   标记/取消标记评论"有用" {isUseful}
- GET  /api/admin/errors                      错误统计
- POST /api/admin/errors/reset                重置错误统计

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import get_jwt_identity

from freepool.schemas import MarkUsefulRequest, parse_body
from freepool.services import comments as comment_service
from freepool.services.verification import (
    get_campaigns_needing_verification, get_verification_needed_count, mark_campaign_verified,
)
from freepool.utils.auth_utils import admin_required
from freepool.utils.error_handler import ErrorHandler
from freepool.utils.exceptions import NotFound

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/verification-needed', methods=['GET'])
@admin_required
def list_verification_needed():
    campaigns = get_campaigns_needing_verification()
    return jsonify({'success': True, 'data': campaigns, 'count': len(campaigns)}), 200


@admin_bp.route('/verification-needed/count', methods=['GET'])
@admin_required
def count_verification_needed():
    return jsonify({'success': True, 'data': {'count': get_verification_needed_count()}}), 200


@admin_bp.route('/campaigns/<campaign_id>/verify', methods=['POST'])
@admin_required
def verify_campaign(campaign_id):
    campaign = mark_campaign_verified(campaign_id)
    if campaign is None:
        raise NotFound(f'Campaign with ID "{campaign_id}" not found')
    current_app.logger.info(f"管理员 {get_jwt_identity()} 核实了活动 {campaign_id}")
    return jsonify({'success': True, 'data': campaign.to_dict()}), 200


@admin_bp.route('/comments/<comment_id>/mark-useful', methods=['POST'])
@admin_required
def mark_comment_useful(comment_id):
    payload = parse_body(MarkUsefulRequest)
    comment = comment_service.mark_useful(comment_id, payload.is_useful)
    return jsonify({'success': True, 'data': comment.to_dict()}), 200


@admin_bp.route('/errors', methods=['GET'])
@admin_required
def get_error_stats():
    """获取错误统计信息"""
    return jsonify({'success': True, 'data': ErrorHandler.get_error_stats()}), 200


@admin_bp.route('/errors/reset', methods=['POST'])
@admin_required
def reset_error_stats():
    ErrorHandler.reset_stats()
    current_app.logger.info(f"管理员 {get_jwt_identity()} 重置了错误统计")
    return jsonify({'success': True, 'data': {'message': 'Error statistics reset'}}), 200
