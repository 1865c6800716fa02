"""
交互写入服务 (MutationGate)

所有对 interactions 表的写操作都经过这里，每个操作只发出一条原子的数据库语句
(带冲突处理的 INSERT 或带条件的 DELETE)，不做"先查再写"，
因此并发请求不会产生重复记录，也不会出现两个请求都认为自己"新增"的情况。

- set_reaction: 单例反馈的 upsert，冲突时覆盖类别
- toggle: 先按唯一键 DELETE，删到记录即视为"移除"，否则 INSERT ... ON CONFLICT DO NOTHING 视为"新增"
- add: INSERT ... ON CONFLICT DO NOTHING，通过影响行数判断是否新建
- remove / clear_reaction: 条件 DELETE，返回是否删除了记录

调用方必须传入 RequestContext，匿名调用抛出 Unauthorized，任何行都不会写入。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from freepool import db
from freepool.models.campaign import Campaign
from freepool.models.comment import Comment
from freepool.models.interaction import (
    Interaction, ALLOWED_KINDS, TARGET_CAMPAIGN, TARGET_COMMENT,
    KIND_REACTION, parse_category,
)
from freepool.utils.exceptions import NotFound, Unauthorized, ValidationFailed

logger = logging.getLogger(__name__)

ADDED = 'added'
REMOVED = 'removed'

# 支持 ON CONFLICT 子句的方言
UPSERT_DIALECTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


@dataclass
class ToggleResult:
    state: str
    interaction: Optional[Interaction] = None

    @property
    def active(self):
        return self.state == ADDED


class MutationGate:

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    # --- 公共操作 ---

    def set_reaction(self, ctx, campaign_id, category):
        """
        设置 (或替换) 调用者对活动的快速反馈。

        同一用户对同一活动最多一条反馈，重复提交只会修改类别。
        返回写入后的 Interaction。
        """
        self._require_subject(ctx)
        kind, slot = self._resolve(TARGET_CAMPAIGN, category)
        if kind != KIND_REACTION:
            raise ValidationFailed('Invalid reaction type')
        self._require_target(TARGET_CAMPAIGN, campaign_id)

        values = self._row_values(ctx, TARGET_CAMPAIGN, campaign_id, kind, slot, category)
        try:
            self._upsert(values, update_columns=('category', 'updated_at'))
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error("设置反馈失败: campaign_id=%s, user_id=%s, error=%s", campaign_id, ctx.user_id, e)
            raise e
        return Interaction.find(ctx.user_id, TARGET_CAMPAIGN, campaign_id, kind, slot)

    def toggle(self, ctx, target_type, target_id, category, notes=None) -> ToggleResult:
        """
        切换调用者在某对象上的某个类别。

        已持有该类别则删除并返回 removed，否则写入并返回 added。
        对单例反馈：持有的是其他反馈类型时，直接替换为新类型。
        """
        self._require_subject(ctx)
        kind, slot = self._resolve(target_type, category)
        self._require_target(target_type, target_id)

        try:
            deleted = self._delete(ctx.user_id, target_type, target_id, kind, slot, category=category)
            if deleted:
                self.session.commit()
                return ToggleResult(REMOVED)

            values = self._row_values(ctx, target_type, target_id, kind, slot, category, notes=notes)
            if kind == KIND_REACTION:
                self._upsert(values, update_columns=('category', 'updated_at'))
            else:
                self._insert_if_absent(values)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error("切换交互失败: %s %s, category=%s, error=%s", target_type, target_id, category, e)
            raise e
        return ToggleResult(ADDED, Interaction.find(ctx.user_id, target_type, target_id, kind, slot))

    def add(self, ctx, target_type, target_id, category, notes=None):
        """
        幂等新增，返回 (interaction, created)。

        记录已存在时 created 为 False，已有记录保持不变。
        """
        self._require_subject(ctx)
        kind, slot = self._resolve(target_type, category)
        self._require_target(target_type, target_id)

        values = self._row_values(ctx, target_type, target_id, kind, slot, category, notes=notes)
        try:
            created = self._insert_if_absent(values) > 0
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error("新增交互失败: %s %s, category=%s, error=%s", target_type, target_id, category, e)
            raise e
        return Interaction.find(ctx.user_id, target_type, target_id, kind, slot), created

    def remove(self, ctx, target_type, target_id, category):
        """删除调用者持有的某个类别，返回是否删除了记录"""
        self._require_subject(ctx)
        kind, slot = self._resolve(target_type, category)
        return self._delete_and_commit(ctx.user_id, target_type, target_id, kind, slot)

    def clear_reaction(self, ctx, campaign_id):
        """删除调用者对活动的反馈 (不论当前是哪种类型)"""
        self._require_subject(ctx)
        return self._delete_and_commit(ctx.user_id, TARGET_CAMPAIGN, campaign_id, KIND_REACTION, '')

    # --- 校验 ---

    @staticmethod
    def _require_subject(ctx):
        if ctx is None or not ctx.is_authenticated:
            raise Unauthorized()

    @staticmethod
    def _resolve(target_type, category):
        if target_type not in ALLOWED_KINDS:
            raise ValidationFailed(f'Invalid target type: {target_type}')
        kind, slot = parse_category(category)
        if kind not in ALLOWED_KINDS[target_type]:
            raise ValidationFailed(f'Interaction kind "{kind}" is not supported for {target_type}')
        return kind, slot

    @staticmethod
    def _require_target(target_type, target_id):
        if target_type == TARGET_CAMPAIGN:
            if Campaign.get_active(target_id) is None:
                raise NotFound(f'Campaign with ID "{target_id}" not found')
        elif target_type == TARGET_COMMENT:
            if Comment.get_active(target_id) is None:
                raise NotFound(f'Comment with ID "{target_id}" not found')

    # --- 原子语句 ---

    @staticmethod
    def _row_values(ctx, target_type, target_id, kind, slot, category, notes=None):
        now = datetime.utcnow()
        return {
            'user_id': ctx.user_id,
            'target_type': target_type,
            'target_id': target_id,
            'kind': kind,
            'slot': slot,
            'category': category,
            'notes': notes,
            'created_at': now,
            'updated_at': now,
        }

    def _dialect_insert(self):
        dialect = self.session.get_bind().dialect.name
        return UPSERT_DIALECTS.get(dialect)

    def _insert_if_absent(self, values):
        """INSERT ... ON CONFLICT DO NOTHING，返回实际插入的行数 (0 或 1)"""
        insert_fn = self._dialect_insert()
        if insert_fn is not None:
            stmt = insert_fn(Interaction.__table__).values(**values).on_conflict_do_nothing(
                index_elements=list(Interaction.UNIQUE_COLUMNS)
            )
            return self.session.connection().execute(stmt).rowcount

        # 不支持 ON CONFLICT 的数据库：在保存点内插入，唯一约束冲突即视为已存在
        try:
            with self.session.begin_nested():
                self.session.connection().execute(Interaction.__table__.insert().values(**values))
            return 1
        except IntegrityError:
            return 0

    def _upsert(self, values, update_columns):
        """INSERT ... ON CONFLICT DO UPDATE，只更新 update_columns"""
        insert_fn = self._dialect_insert()
        if insert_fn is not None:
            stmt = insert_fn(Interaction.__table__).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=list(Interaction.UNIQUE_COLUMNS),
                set_={column: stmt.excluded[column] for column in update_columns}
            )
            self.session.connection().execute(stmt)
            return

        if self._insert_if_absent(values):
            return
        table = Interaction.__table__
        self.session.connection().execute(
            table.update()
            .where(*self._key_clauses(values['user_id'], values['target_type'], values['target_id'],
                                      values['kind'], values['slot']))
            .values({column: values[column] for column in update_columns})
        )

    @staticmethod
    def _key_clauses(user_id, target_type, target_id, kind, slot):
        table = Interaction.__table__
        return (
            table.c.user_id == user_id,
            table.c.target_type == target_type,
            table.c.target_id == target_id,
            table.c.kind == kind,
            table.c.slot == slot,
        )

    def _delete(self, user_id, target_type, target_id, kind, slot, category=None):
        """按唯一键删除 (可附加类别条件)，返回删除的行数"""
        clauses = list(self._key_clauses(user_id, target_type, target_id, kind, slot))
        if category is not None:
            clauses.append(Interaction.__table__.c.category == category)
        stmt = delete(Interaction.__table__).where(*clauses)
        return self.session.connection().execute(stmt).rowcount

    def _delete_and_commit(self, user_id, target_type, target_id, kind, slot):
        try:
            deleted = self._delete(user_id, target_type, target_id, kind, slot)
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error("删除交互失败: %s %s, kind=%s, error=%s", target_type, target_id, kind, e)
            raise e
        return deleted > 0
