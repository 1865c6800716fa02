"""
活动待核实监控 (Verification)

根据用户的快速反馈判断活动信息是否可能已经失效：
- 没有任何反馈时不做判断，也不修改活动；
- 否则 needs_verification = expired > still_works * 1.5，并写回活动。

反馈变化后通过 Celery 任务异步重新计算；管理员可以查看待核实列表并手动清除标记。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
import logging

from freepool import db
from freepool.models.campaign import Campaign, CAMPAIGN_STATUS_PUBLISHED
from freepool.models.interaction import TARGET_CAMPAIGN, KIND_REACTION
from freepool.services.aggregator import get_aggregator

logger = logging.getLogger(__name__)

# "已失效"反馈数超过"仍可用"反馈数的这个倍数时标记为待核实
EXPIRED_RATIO_THRESHOLD = 1.5


def needs_verification(stats):
    """根据反馈统计判断是否需要核实，total 为 0 时返回 False"""
    if not stats['total']:
        return False
    return stats['expired'] > stats['stillWorks'] * EXPIRED_RATIO_THRESHOLD


def check_verification_needed(campaign_id):
    """
    重新计算活动的待核实标记并写回数据库。

    没有反馈时直接返回 False，不修改活动。
    返回计算结果。
    """
    stats = get_aggregator().read(None, TARGET_CAMPAIGN, campaign_id, (KIND_REACTION,)).reaction_stats()
    if stats['total'] == 0:
        return False

    flag = needs_verification(stats)
    campaign = db.session.get(Campaign, campaign_id)
    if campaign is None:
        logger.warning("重新计算待核实标记时活动 %s 不存在", campaign_id)
        return flag

    if campaign.needs_verification != flag:
        try:
            campaign.needs_verification = flag
            db.session.commit()
            logger.info("活动 %s 待核实标记更新为 %s (stats=%s)", campaign_id, flag, stats)
        except Exception as e:
            db.session.rollback()
            logger.error("更新活动 %s 待核实标记失败: %s", campaign_id, e)
            raise e
    return flag


def queue_verification_refresh(campaign_id):
    """
    把重新计算待核实标记的任务放入 Celery 队列。

    队列不可用只记录日志，不影响已经成功的反馈请求。
    """
    from freepool.tasks import refresh_verification_flag
    try:
        refresh_verification_flag.delay(campaign_id)
    except Exception as e:
        logger.error("待核实标记任务入队失败: campaign_id=%s, error=%s", campaign_id, e)


def get_campaigns_needing_verification():
    """已发布、未删除且被标记为待核实的活动，附带反馈统计，按更新时间倒序"""
    campaigns = (
        Campaign.query
        .filter(
            Campaign.needs_verification.is_(True),
            Campaign.status == CAMPAIGN_STATUS_PUBLISHED,
            Campaign.deleted_at.is_(None)
        )
        .order_by(Campaign.updated_at.desc())
        .all()
    )
    if not campaigns:
        return []

    results = get_aggregator().read_all(None, TARGET_CAMPAIGN, [c.id for c in campaigns], (KIND_REACTION,))
    return [
        {'campaign': campaign.to_dict(), 'reactionStats': results[campaign.id].reaction_stats()}
        for campaign in campaigns
    ]


def get_verification_needed_count():
    return Campaign.query.filter(
        Campaign.needs_verification.is_(True),
        Campaign.status == CAMPAIGN_STATUS_PUBLISHED,
        Campaign.deleted_at.is_(None)
    ).count()


def mark_campaign_verified(campaign_id):
    """管理员确认活动信息无误，清除待核实标记。活动不存在返回 None"""
    campaign = Campaign.get_active(campaign_id)
    if campaign is None:
        return None
    try:
        campaign.needs_verification = False
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("清除活动 %s 待核实标记失败: %s", campaign_id, e)
        raise e
    logger.info("活动 %s 已被管理员标记为已核实", campaign_id)
    return campaign
