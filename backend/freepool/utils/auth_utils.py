from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity, verify_jwt_in_request

from freepool.utils.exceptions import Forbidden


@dataclass(frozen=True)
class RequestContext:
    """
    显式传递给服务层的调用方上下文。

    user_id 为 None 表示匿名调用；服务层据此决定是否抛出 Unauthorized，
    而不是在服务内部读取全局请求状态。
    """
    user_id: Optional[str] = None
    is_admin: bool = False

    @property
    def is_authenticated(self):
        return self.user_id is not None


ANONYMOUS = RequestContext()


def get_request_context():
    """
    从请求头解析 JWT（可选）并构造 RequestContext。

    没有令牌时返回匿名上下文；令牌无效或过期时由 Flask-JWT-Extended 的错误回调处理。
    """
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    if identity is None:
        return ANONYMOUS
    claims = get_jwt()
    return RequestContext(user_id=str(identity), is_admin=claims.get('is_admin') is True)


def admin_required(fn):
    """
    装饰器：确保只有管理员才能访问该端点。

    它会检查 JWT 中是否存在 'is_admin': True 的声明。
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        claims = get_jwt()

        if claims.get('is_admin') is True:
            return fn(*args, **kwargs)
        raise Forbidden('Admin access required')

    # 手动应用 jwt_required 以确保在检查权限前用户已认证
    return jwt_required()(wrapper)
