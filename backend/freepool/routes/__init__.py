from flask import current_app


def mutation_limit():
    """写操作接口的限流规则，从配置读取"""
    return current_app.config.get('RATELIMIT_MUTATION', '60 per minute')
