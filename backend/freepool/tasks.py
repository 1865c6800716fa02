"""
Celery 后台任务。

- refresh_verification_flag: 活动收到快速反馈后重新计算待核实标记
"""
from contextlib import nullcontext

from celery.utils.log import get_task_logger
from flask import has_app_context

from .celery_utils import celery_app

logger = get_task_logger(__name__)

# 定义重试策略，例如最多重试3次，延迟时间逐渐增加
RETRY_KWARGS = {
    'max_retries': 3,
    'default_retry_delay': 60,  # 1 minute
    'autoretry_for': (Exception,),
    'retry_backoff': True,
    'retry_backoff_max': 60,
    'retry_jitter': True
}


def _app_context():
    """已在应用上下文中 (eager 模式) 时直接复用，否则创建新应用"""
    if has_app_context():
        return nullcontext()
    from freepool import create_app
    return create_app().app_context()


@celery_app.task(bind=True, **RETRY_KWARGS)
def refresh_verification_flag(self, campaign_id):
    """异步重新计算活动的待核实标记"""
    logger.info(f"[TASK_STARTED] refresh_verification_flag for campaign_id: {campaign_id}")

    with _app_context():
        from freepool import db
        from freepool.services.verification import check_verification_needed

        try:
            flag = check_verification_needed(campaign_id)
            logger.info(f"Campaign {campaign_id} needs_verification={flag}")
            return flag
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error refreshing verification flag for campaign {campaign_id}: {e}", exc_info=True)
            raise
