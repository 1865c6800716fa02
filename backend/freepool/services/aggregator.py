"""
互动聚合服务 (Aggregator)

把 interactions 表中的原始记录按对象和类别聚合成计数，并附带当前调用者自己的状态。

- 单个对象和批量对象走同一条路径：一次分组计数查询 + (已登录时) 一次调用者记录查询，
  两个结果集在内存中按对象ID合并，避免列表页逐条查询。
- 请求中的每个ID都会出现在结果中，没有任何交互时计数补 0。
- 聚合结果只在读取时计算，不落库也不缓存。
- 数据库异常直接向上抛出，整批一起失败，不返回部分结果。
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flask import current_app, has_app_context
from sqlalchemy import func

from freepool import db
from freepool.models.interaction import (
    Interaction,
    TARGET_CAMPAIGN, TARGET_TYPES, ALLOWED_KINDS,
    KIND_REACTION, KIND_EMOJI, KIND_BOOKMARK, KIND_PARTICIPATION,
    REACTION_STILL_WORKS, REACTION_EXPIRED, REACTION_INFO_INCORRECT, REACTION_TYPES,
    CATEGORY_BOOKMARK, CATEGORY_PARTICIPATION, EMOJI_PREFIX,
)
from freepool.utils.auth_utils import ANONYMOUS
from freepool.utils.exceptions import ValidationFailed

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 100

# 每种交互在结果中默认出现的类别 (没有记录时计数为 0)
ZERO_FILLED_CATEGORIES = {
    KIND_REACTION: REACTION_TYPES,
    KIND_EMOJI: (),
    KIND_BOOKMARK: (CATEGORY_BOOKMARK,),
    KIND_PARTICIPATION: (CATEGORY_PARTICIPATION,),
}


@dataclass
class AggregateResult:
    """单个对象的聚合结果"""
    object_id: str
    counts: Dict[str, int] = field(default_factory=dict)
    # 单例类交互 (反馈/收藏/参与) 调用者当前持有的类别，kind -> category
    caller_categories: Dict[str, str] = field(default_factory=dict)
    # 调用者持有的表情集合
    caller_emojis: List[str] = field(default_factory=list)

    @property
    def total(self):
        return sum(self.counts.values())

    def caller_category(self, kind):
        return self.caller_categories.get(kind)

    def count(self, category):
        return self.counts.get(category, 0)

    def reaction_stats(self):
        still_works = self.count(REACTION_STILL_WORKS)
        expired = self.count(REACTION_EXPIRED)
        info_incorrect = self.count(REACTION_INFO_INCORRECT)
        return {
            'stillWorks': still_works,
            'expired': expired,
            'infoIncorrect': info_incorrect,
            'total': still_works + expired + info_incorrect,
        }

    def emoji_list(self):
        """[{emoji, count, userReacted}]，按数量倒序，数量相同按表情排序"""
        items = [
            (category[len(EMOJI_PREFIX):], count)
            for category, count in self.counts.items()
            if category.startswith(EMOJI_PREFIX) and count > 0
        ]
        items.sort(key=lambda item: (-item[1], item[0]))
        return [
            {'emoji': glyph, 'count': count, 'userReacted': glyph in self.caller_emojis}
            for glyph, count in items
        ]

    def to_dict(self):
        return {
            'objectId': self.object_id,
            'counts': dict(self.counts),
            'total': self.total,
            'callerCategories': dict(self.caller_categories),
            'callerEmojis': sorted(self.caller_emojis),
        }


class Aggregator:
    """按对象批量计算互动聚合结果"""

    def __init__(self, batch_limit=DEFAULT_BATCH_LIMIT, session=None):
        self.batch_limit = batch_limit
        self.session = session if session is not None else db.session

    def normalize_ids(self, object_ids):
        """去重 (保持顺序)、去掉空值，并截断到 batch_limit"""
        seen = set()
        ids = []
        for object_id in object_ids or []:
            if object_id is None:
                continue
            object_id = str(object_id).strip()
            if not object_id or object_id in seen:
                continue
            seen.add(object_id)
            ids.append(object_id)
        if len(ids) > self.batch_limit:
            logger.info("批量查询ID数量 %s 超过上限 %s，已截断", len(ids), self.batch_limit)
            ids = ids[:self.batch_limit]
        return ids

    def read(self, ctx, target_type, object_id, kinds):
        """单个对象的聚合结果，ID 为空 (或只有空白) 时抛出 ValidationFailed"""
        ids = self.normalize_ids([object_id])
        if not ids:
            raise ValidationFailed('Invalid id')
        return self.read_batch(ctx, target_type, ids, kinds)[0]

    def read_batch(self, ctx, target_type, object_ids, kinds) -> List[AggregateResult]:
        """
        批量聚合。

        返回列表与去重截断后的ID一一对应，顺序与请求一致。
        ctx 为 None 或匿名时不查询调用者自己的记录。
        """
        kinds = self._check_kinds(target_type, kinds)
        ids = self.normalize_ids(object_ids)
        if not ids:
            return []

        results = {}
        for object_id in ids:
            counts = {}
            for kind in kinds:
                for category in ZERO_FILLED_CATEGORIES[kind]:
                    counts[category] = 0
            results[object_id] = AggregateResult(object_id=object_id, counts=counts)

        count_rows = (
            self.session.query(Interaction.target_id, Interaction.category, func.count(Interaction.id))
            .filter(
                Interaction.target_type == target_type,
                Interaction.target_id.in_(ids),
                Interaction.kind.in_(kinds),
            )
            .group_by(Interaction.target_id, Interaction.category)
            .all()
        )
        for target_id, category, count in count_rows:
            results[target_id].counts[category] = int(count)

        ctx = ctx or ANONYMOUS
        if ctx.is_authenticated:
            caller_rows = (
                self.session.query(Interaction.target_id, Interaction.kind, Interaction.slot, Interaction.category)
                .filter(
                    Interaction.user_id == ctx.user_id,
                    Interaction.target_type == target_type,
                    Interaction.target_id.in_(ids),
                    Interaction.kind.in_(kinds),
                )
                .all()
            )
            for target_id, kind, slot, category in caller_rows:
                entry = results[target_id]
                if kind == KIND_EMOJI:
                    entry.caller_emojis.append(slot)
                else:
                    entry.caller_categories[kind] = category

        return [results[object_id] for object_id in ids]

    def read_map(self, ctx, target_type, object_ids, kinds) -> Dict[str, AggregateResult]:
        """read_batch 的字典形式，key 为对象ID"""
        return {result.object_id: result for result in self.read_batch(ctx, target_type, object_ids, kinds)}

    def read_all(self, ctx, target_type, object_ids, kinds) -> Dict[str, AggregateResult]:
        """
        服务端内部使用：ID 数量不受 batch_limit 截断，按 batch_limit 分段读取。
        面向客户端的批量接口请使用 read_batch。
        """
        ids = list(dict.fromkeys(object_ids))
        results = {}
        for start in range(0, len(ids), self.batch_limit):
            results.update(self.read_map(ctx, target_type, ids[start:start + self.batch_limit], kinds))
        return results

    @staticmethod
    def _check_kinds(target_type, kinds):
        if target_type not in TARGET_TYPES:
            raise ValidationFailed(f'Invalid target type: {target_type}')
        kinds = tuple(kinds)
        if not kinds:
            raise ValidationFailed('At least one interaction kind is required')
        for kind in kinds:
            if kind not in ALLOWED_KINDS[target_type]:
                raise ValidationFailed(f'Interaction kind "{kind}" is not supported for {target_type}')
        return kinds


def get_aggregator() -> Aggregator:
    """使用应用配置中的批量上限创建 Aggregator"""
    batch_limit = DEFAULT_BATCH_LIMIT
    if has_app_context():
        batch_limit = current_app.config.get('BATCH_LIMIT', DEFAULT_BATCH_LIMIT)
    return Aggregator(batch_limit=batch_limit)


def get_reaction_stats(campaign_id, ctx=None):
    """单个活动的快速反馈统计 {stillWorks, expired, infoIncorrect, total}"""
    return get_aggregator().read(ctx, TARGET_CAMPAIGN, campaign_id, (KIND_REACTION,)).reaction_stats()


def get_user_reaction(campaign_id, ctx) -> Optional[Interaction]:
    """调用者对某活动的反馈记录，匿名时为 None"""
    if ctx is None or not ctx.is_authenticated:
        return None
    return Interaction.find(ctx.user_id, TARGET_CAMPAIGN, campaign_id, KIND_REACTION)
