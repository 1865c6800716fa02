"""
错误处理模块

提供全站错误处理功能，包括：
- 业务异常 (ApiError 子类) 转换为统一的 envelope 响应
- 框架错误 (404/405/429 等) 同样返回 envelope
- 未捕获异常记录完整堆栈，只向客户端返回通用 500 信息
- 错误统计，供管理员接口查看
"""

from flask import jsonify, request, current_app
from werkzeug.exceptions import HTTPException
import re
import time
import threading
from collections import Counter, deque
from datetime import datetime

from .exceptions import ApiError

UUID_SEGMENT = re.compile(r'/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}')
NUMERIC_SEGMENT = re.compile(r'/\d+(?=/|$)')

ERROR_MESSAGES = {
    400: "Invalid request",
    401: "Authentication required",
    403: "Forbidden",
    404: "Not found",
    405: "Method not allowed",
    409: "Conflict",
    422: "Unprocessable request",
    429: "Too many requests",
    500: "Internal server error",
}


def error_response(message, status_code):
    return jsonify({
        'success': False,
        'error': message
    }), status_code


class ErrorStats:
    """进程内错误统计，多线程共享，所有读写都在锁内完成"""

    def __init__(self, max_recent=100):
        self._lock = threading.Lock()
        self.max_recent = max_recent
        self._reset()

    def _reset(self):
        self.last_reset = time.time()
        self.total_count = 0
        self.by_code = Counter()
        self.by_endpoint = Counter()
        self.by_ip = Counter()
        self.recent = deque(maxlen=self.max_recent)

    def record(self, status_code, path, method, client_ip, message):
        with self._lock:
            self.total_count += 1
            self.by_code[status_code] += 1
            self.by_endpoint[ErrorHandler._simplify_path(path)] += 1
            self.by_ip[client_ip] += 1
            self.recent.append({
                'timestamp': datetime.now().isoformat(),
                'status_code': status_code,
                'path': path,
                'method': method,
                'client_ip': client_ip,
                'message': message,
            })

    def snapshot(self, recent_limit=20, top_ips=10):
        with self._lock:
            return {
                'total_count': self.total_count,
                'by_code': dict(self.by_code),
                'by_endpoint': dict(self.by_endpoint),
                'recent_errors': list(self.recent)[-recent_limit:],
                'top_ips': dict(self.by_ip.most_common(top_ips)),
                'last_reset': self.last_reset,
            }

    def reset(self):
        with self._lock:
            self._reset()


_error_stats = ErrorStats()


class ErrorHandler:
    """错误处理器"""

    @staticmethod
    def register_handlers(app):
        """注册所有错误处理器"""

        @app.errorhandler(ApiError)
        def handle_api_error(e):
            """业务异常：消息可以直接返回给客户端"""
            ErrorHandler._record_error(e.status_code, request.path, request.method, request.remote_addr, e.message)
            return error_response(e.message, e.status_code)

        @app.errorhandler(HTTPException)
        def handle_http_exception(e):
            """框架抛出的 HTTP 错误 (路由不存在、方法不允许、限流等)"""
            status_code = e.code or 500
            message = ERROR_MESSAGES.get(status_code, e.name)
            ErrorHandler._record_error(status_code, request.path, request.method, request.remote_addr, message)
            return error_response(message, status_code)

        @app.errorhandler(Exception)
        def handle_server_error(e):
            """未捕获异常：记录完整错误到日志，不向客户端泄露细节"""
            current_app.logger.error(f"服务器错误: {request.method} {request.path} - {e}", exc_info=e)
            ErrorHandler._record_error(500, request.path, request.method, request.remote_addr, str(e))
            return error_response(ERROR_MESSAGES[500], 500)

    @staticmethod
    def _record_error(status_code, path, method, client_ip, error_msg):
        _error_stats.record(status_code, path, method, client_ip, error_msg)

    @staticmethod
    def _simplify_path(path):
        """把路径中的 UUID 和数字ID替换为占位符，便于按端点聚合"""
        path = UUID_SEGMENT.sub('/{uuid}', path)
        return NUMERIC_SEGMENT.sub('/{id}', path)

    @staticmethod
    def get_error_stats():
        """最近 20 条错误、前 10 个 IP 以及各维度计数"""
        return _error_stats.snapshot()

    @staticmethod
    def reset_stats():
        _error_stats.reset()
