import os
from dotenv import load_dotenv

# 加载.env文件
load_dotenv()

# API相关配置
API_HOST = os.getenv('API_HOST', '0.0.0.0')  # 确保默认值是有效的IP
API_PORT = int(os.getenv('API_PORT', 5001))  # 确保默认端口是数字
API_DEBUG = os.getenv('API_DEBUG', 'False').lower() == 'true'

# 安全相关配置
SECRET_KEY = os.getenv('SECRET_KEY', 'dev_secret_key_12345')
JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt_secret_key_67890')
JWT_ACCESS_TOKEN_EXPIRES = int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', 60 * 60 * 24 * 7))  # 7天
JWT_TOKEN_LOCATION = ['headers']
JWT_HEADER_NAME = 'Authorization'
JWT_HEADER_TYPE = 'Bearer'

# 数据库配置
DB_TYPE = os.getenv('DB_TYPE', 'sqlite')
DB_USER = os.getenv('DB_USER')
DB_PASSWORD = os.getenv('DB_PASSWORD')
DB_HOST = os.getenv('DB_HOST', 'localhost')
DB_PORT = os.getenv('DB_PORT', '5432')
DB_NAME = os.getenv('DB_NAME')
SQLALCHEMY_TRACK_MODIFICATIONS = False
SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'False').lower() == 'true'

# --- SQLAlchemy 连接池配置 (仅对 PostgreSQL 生效) ---
SQLALCHEMY_POOL_SIZE = 20       # 池中保持的最小连接数
SQLALCHEMY_MAX_OVERFLOW = 10    # 允许池大小临时超出的连接数
SQLALCHEMY_POOL_TIMEOUT = 30    # 获取连接的超时时间 (秒)
SQLALCHEMY_POOL_RECYCLE = 1800  # 连接自动回收时间 (秒，30 分钟)

# Redis配置 (Celery broker 与限流存储共用)
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# 限流配置
RATELIMIT_ENABLED = os.getenv('RATELIMIT_ENABLED', 'True').lower() == 'true'
RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', REDIS_URL)
RATELIMIT_DEFAULT = ["10000 per day", "3000 per hour"]
RATELIMIT_MUTATION = os.getenv('RATELIMIT_MUTATION', '60 per minute')

# 批量查询上限，超出部分直接截断
BATCH_LIMIT = int(os.getenv('BATCH_LIMIT', 100))

# 日志目录
LOG_DIR = os.getenv('LOG_DIR', os.path.join(os.path.abspath(os.path.dirname(os.path.dirname(__file__))), 'logs'))

# CORS配置
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://localhost:3001').split(',')
    if origin.strip()
]


# 获取数据库URI
def get_database_uri():
    """构建数据库URI，DATABASE_URL 优先"""
    database_url = os.getenv('DATABASE_URL')
    if database_url:
        return database_url
    if DB_TYPE == 'postgresql':
        return f'postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}'
    # 默认使用SQLite
    return 'sqlite:///' + os.path.join(os.path.abspath(os.path.dirname(__file__)), 'free_pool.db')


def get_engine_options(database_uri):
    """连接池参数，SQLite 不支持 pool_size 等参数"""
    if database_uri.startswith('sqlite'):
        return {}
    return {
        'pool_size': SQLALCHEMY_POOL_SIZE,
        'max_overflow': SQLALCHEMY_MAX_OVERFLOW,
        'pool_timeout': SQLALCHEMY_POOL_TIMEOUT,
        'pool_recycle': SQLALCHEMY_POOL_RECYCLE,
        'pool_pre_ping': True,
    }
