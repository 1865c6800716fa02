"""
Celery工具模块

此模块提供Celery的配置和实例，用于处理后台任务（例如反馈后重新计算活动的待核实标记）。
"""

from celery import Celery

from freepool.config import REDIS_URL

# 创建Celery实例
celery = Celery(
    'freepool',
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=['freepool.tasks']
)

# 默认Celery配置
celery_config = {
    'broker_url': REDIS_URL,
    'result_backend': REDIS_URL,
    'task_serializer': 'json',
    'accept_content': ['json'],
    'result_serializer': 'json',
    'timezone': 'Asia/Shanghai',
    'worker_max_tasks_per_child': 1000,  # 每个worker子进程处理1000个任务后重启
    'task_ignore_result': True,
    'task_routes': {
        'freepool.tasks.refresh_*': {'queue': 'updates'},
    }
}

# 更新Celery配置
celery.conf.update(celery_config)

celery_app = celery


def init_celery(app):
    """用 Flask 配置中的 CELERY 字典覆盖默认配置（测试中可设置 task_always_eager 等）"""
    overrides = app.config.get('CELERY')
    if overrides:
        celery_app.conf.update(overrides)
    app.extensions['celery'] = celery_app
    return celery_app
