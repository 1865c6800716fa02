#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
AI Free Pool 互动服务启动脚本

使用方法：
1. 启动开发服务器：python run.py
2. 使用gunicorn部署：gunicorn -w 4 -b 0.0.0.0:5001 "run:app"
3. 启动Celery worker：celery -A freepool.celery_utils.celery_app worker -Q updates,celery -l info

注意：
- 开发模式下使用Flask内置服务器
- 待核实标记的重新计算依赖 Celery worker，Redis 不可用时反馈接口仍然可用
"""
import os
import time
import logging

import redis
from dotenv import load_dotenv

from freepool import create_app
from freepool.config import API_HOST, API_PORT, API_DEBUG, REDIS_URL

logger = logging.getLogger(__name__)

# 创建Flask应用实例 - 为gunicorn提供
app = create_app()


def test_redis_connection():
    """启动前检查 Redis (Celery broker / 限流存储) 是否可用"""
    try:
        logger.info(f"尝试连接Redis: {REDIS_URL}")
        client = redis.from_url(REDIS_URL)
        test_key = f"redis_test_{time.time()}"
        client.set(test_key, "ok")
        value = client.get(test_key)
        client.delete(test_key)

        if value:
            logger.info("Redis连接测试成功")
            return True
        logger.error("Redis连接测试失败: 无法写入或读取测试键")
        return False
    except redis.RedisError as e:
        logger.error(f"Redis连接测试失败: {e}")
        return False


if __name__ == '__main__':
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    if not test_redis_connection():
        logger.warning("Redis连接测试失败，但将继续启动应用")

    logger.info(f"应用配置: HOST={API_HOST}, PORT={API_PORT}, DEBUG={API_DEBUG}")
    app.run(host=API_HOST, port=API_PORT, debug=API_DEBUG)
