"""
活动收藏 API 路由 (均需登录)

- GET    /api/bookmarks                 当前用户的收藏列表 (附带活动信息和 isExpired)
- POST   /api/bookmarks                 收藏活动 (幂等，重复收藏返回已有记录)
- GET    /api/bookmarks/ids             当前用户收藏的活动ID列表
- GET    /api/bookmarks/<campaign_id>   是否已收藏
- DELETE /api/bookmarks/<campaign_id>   取消收藏，未收藏返回 404
- POST   /api/bookmarks/<campaign_id>   切换收藏状态

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required

from freepool import limiter
from freepool.models.interaction import TARGET_CAMPAIGN, KIND_BOOKMARK, CATEGORY_BOOKMARK
from freepool.routes import mutation_limit
from freepool.schemas import BookmarkRequest, parse_body
from freepool.services.engagement import get_user_campaign_interactions, get_user_campaign_ids, get_user_interaction
from freepool.services.mutation_gate import MutationGate
from freepool.utils.auth_utils import get_request_context
from freepool.utils.exceptions import NotFound

bookmarks_bp = Blueprint('bookmarks', __name__)


@bookmarks_bp.route('', methods=['GET'])
@jwt_required()
def get_bookmarks():
    ctx = get_request_context()
    bookmarks = get_user_campaign_interactions(ctx, KIND_BOOKMARK)
    return jsonify({'success': True, 'data': bookmarks, 'count': len(bookmarks)}), 200


@bookmarks_bp.route('', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def create_bookmark():
    ctx = get_request_context()
    payload = parse_body(BookmarkRequest)
    bookmark, created = MutationGate().add(ctx, TARGET_CAMPAIGN, payload.campaign_id, CATEGORY_BOOKMARK)
    if created:
        current_app.logger.info(f"用户 {ctx.user_id} 收藏活动 {payload.campaign_id}")
    return jsonify({'success': True, 'data': bookmark.to_dict() if bookmark else None}), 200


@bookmarks_bp.route('/ids', methods=['GET'])
@jwt_required()
def get_bookmark_ids():
    ctx = get_request_context()
    return jsonify({'success': True, 'data': get_user_campaign_ids(ctx, KIND_BOOKMARK)}), 200


@bookmarks_bp.route('/<campaign_id>', methods=['GET'])
@jwt_required()
def check_bookmark(campaign_id):
    ctx = get_request_context()
    bookmark = get_user_interaction(ctx, campaign_id, KIND_BOOKMARK)
    return jsonify({
        'success': True,
        'data': {
            'bookmarked': bookmark is not None,
            'bookmark': bookmark.to_dict() if bookmark else None,
        }
    }), 200


@bookmarks_bp.route('/<campaign_id>', methods=['DELETE'])
@jwt_required()
@limiter.limit(mutation_limit)
def remove_bookmark(campaign_id):
    ctx = get_request_context()
    if not MutationGate().remove(ctx, TARGET_CAMPAIGN, campaign_id, CATEGORY_BOOKMARK):
        raise NotFound('Bookmark not found')
    return jsonify({'success': True, 'data': {'message': 'Bookmark removed successfully'}}), 200


@bookmarks_bp.route('/<campaign_id>', methods=['POST'])
@jwt_required()
@limiter.limit(mutation_limit)
def toggle_bookmark(campaign_id):
    ctx = get_request_context()
    result = MutationGate().toggle(ctx, TARGET_CAMPAIGN, campaign_id, CATEGORY_BOOKMARK)
    return jsonify({
        'success': True,
        'data': {
            'state': result.state,
            'bookmarked': result.active,
            'bookmark': result.interaction.to_dict() if result.interaction else None,
        }
    }), 200
