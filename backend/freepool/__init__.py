from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
import logging

from .celery_utils import celery_app as celery, init_celery
from .utils.error_handler import ErrorHandler, error_response

from freepool.config import (
    SECRET_KEY, SQLALCHEMY_TRACK_MODIFICATIONS, JWT_SECRET_KEY,
    JWT_TOKEN_LOCATION, JWT_HEADER_NAME, JWT_HEADER_TYPE, JWT_ACCESS_TOKEN_EXPIRES,
    get_database_uri, get_engine_options,
    CORS_ORIGINS,
    SQLALCHEMY_ECHO,
    REDIS_URL,
    RATELIMIT_ENABLED, RATELIMIT_STORAGE_URI, RATELIMIT_DEFAULT, RATELIMIT_MUTATION,
    BATCH_LIMIT,
    LOG_DIR,
)

# 初始化扩展
db = SQLAlchemy()
migrate = Migrate()

# 创建 Flask-JWT-Extended 对象
jwt = JWTManager()

# 创建 Flask-Limiter 对象，存储地址从 app.config['RATELIMIT_STORAGE_URI'] 读取
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=RATELIMIT_DEFAULT,
)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def create_app(config_overrides=None):
    """
    应用工厂。

    config_overrides: 可选的配置字典，覆盖 freepool.config 中的默认值（测试时使用）。
    """
    app = Flask(__name__, instance_relative_config=False)
    app.url_map.strict_slashes = False

    database_uri = get_database_uri()
    app.config.from_mapping(
        SECRET_KEY=SECRET_KEY,
        SQLALCHEMY_TRACK_MODIFICATIONS=SQLALCHEMY_TRACK_MODIFICATIONS,
        SQLALCHEMY_DATABASE_URI=database_uri,
        SQLALCHEMY_ENGINE_OPTIONS=get_engine_options(database_uri),
        SQLALCHEMY_ECHO=SQLALCHEMY_ECHO,
        JWT_SECRET_KEY=JWT_SECRET_KEY,
        JWT_TOKEN_LOCATION=JWT_TOKEN_LOCATION,
        JWT_HEADER_NAME=JWT_HEADER_NAME,
        JWT_HEADER_TYPE=JWT_HEADER_TYPE,
        JWT_ACCESS_TOKEN_EXPIRES=JWT_ACCESS_TOKEN_EXPIRES,
        REDIS_URL=REDIS_URL,
        RATELIMIT_ENABLED=RATELIMIT_ENABLED,
        RATELIMIT_STORAGE_URI=RATELIMIT_STORAGE_URI,
        RATELIMIT_MUTATION=RATELIMIT_MUTATION,
        BATCH_LIMIT=BATCH_LIMIT,
        LOG_DIR=LOG_DIR,
    )
    if config_overrides:
        app.config.update(config_overrides)
        # 覆盖了数据库地址时，连接池参数需要重新计算
        if 'SQLALCHEMY_DATABASE_URI' in config_overrides and 'SQLALCHEMY_ENGINE_OPTIONS' not in config_overrides:
            app.config['SQLALCHEMY_ENGINE_OPTIONS'] = get_engine_options(app.config['SQLALCHEMY_DATABASE_URI'])

    # 初始化扩展
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    CORS(app,
         origins=CORS_ORIGINS,
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization"],
         supports_credentials=True
    )
    limiter.init_app(app)
    init_celery(app)

    # --- Configure Flask Logging ---
    configure_logging(app)

    # 注册错误处理器
    ErrorHandler.register_handlers(app)
    register_jwt_handlers()

    # 注册所有蓝图
    with app.app_context():
        # 确保模型在建表/迁移之前已导入
        from freepool import models  # noqa: F401

        from freepool.routes.reactions import reactions_bp
        from freepool.routes.emoji_reactions import emoji_reactions_bp
        from freepool.routes.bookmarks import bookmarks_bp
        from freepool.routes.participations import participations_bp
        from freepool.routes.engagement import engagement_bp
        from freepool.routes.comments import comments_bp
        from freepool.routes.admin import admin_bp

        app.register_blueprint(reactions_bp, url_prefix='/api/reactions')
        app.register_blueprint(emoji_reactions_bp, url_prefix='/api/campaigns')
        app.register_blueprint(bookmarks_bp, url_prefix='/api/bookmarks')
        app.register_blueprint(participations_bp, url_prefix='/api/participations')
        app.register_blueprint(engagement_bp, url_prefix='/api/engagement')
        app.register_blueprint(comments_bp, url_prefix='/api/comments')
        app.register_blueprint(admin_bp, url_prefix='/api/admin')

        app.logger.debug("已注册路由: %s", sorted(rule.rule for rule in app.url_map.iter_rules()))

    @app.route('/api/health')
    @limiter.exempt
    def health_check():
        return jsonify({
            'success': True,
            'data': {'status': 'healthy'}
        }), 200

    app.logger.info("Flask 应用创建完成")
    return app


def configure_logging(app):
    """控制台 + 文件日志，第三方库日志提高到 WARNING"""
    app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)

    # 避免测试中多次 create_app 导致重复 handler
    if not getattr(app.logger, '_freepool_configured', False):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        app.logger.addHandler(console_handler)

        log_dir = app.config.get('LOG_DIR')
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(os.path.join(log_dir, 'flask-debug.log'))
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            app.logger.addHandler(file_handler)
        app.logger._freepool_configured = True

    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('flask_limiter').setLevel(logging.WARNING)
    logging.getLogger('celery').setLevel(logging.WARNING)


def register_jwt_handlers():
    """JWT 错误统一返回 envelope 格式，并计入错误统计"""

    def _jwt_error(message, status_code):
        ErrorHandler._record_error(status_code, request.path, request.method, request.remote_addr, message)
        return error_response(message, status_code)

    @jwt.invalid_token_loader
    def invalid_token_callback(error_string):
        return _jwt_error(f'Invalid access token: {error_string}', 422)

    @jwt.unauthorized_loader
    def unauthorized_callback(error_string):
        return _jwt_error('Authentication required', 401)

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return _jwt_error('Access token has expired', 401)
