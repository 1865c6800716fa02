"""
业务异常定义。

服务层抛出这些异常，由 ErrorHandler 统一转换为
{"success": false, "error": "..."} 响应。
"""


class ApiError(Exception):
    """所有面向客户端的业务异常的基类"""
    status_code = 400
    code = 'bad_request'
    default_message = 'Bad request'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(ApiError):
    status_code = 401
    code = 'unauthorized'
    default_message = 'Authentication required'


class Forbidden(ApiError):
    status_code = 403
    code = 'forbidden'
    default_message = 'Forbidden'


class NotFound(ApiError):
    status_code = 404
    code = 'not_found'
    default_message = 'Not found'


class ValidationFailed(ApiError):
    status_code = 400
    code = 'validation_error'
    default_message = 'Invalid request'


class Conflict(ApiError):
    status_code = 409
    code = 'conflict'
    default_message = 'Conflict'
