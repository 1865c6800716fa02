"""
定义统一交互模型 (Interaction)。
用于记录用户对活动 (campaign) 和评论 (comment) 的全部交互：
反馈 (still_works / expired / info_incorrect)、表情回应、收藏、参与。

唯一约束 (user_id, target_type, target_id, kind, slot)：
- 反馈、收藏、参与的 slot 为空字符串，同一用户对同一对象每类只能有一条记录；
- 表情回应的 slot 为表情本身，同一用户可以对同一对象持有多个不同表情。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from freepool import db
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint, Index

from freepool.utils.exceptions import ValidationFailed

# 交互对象类型
TARGET_CAMPAIGN = 'campaign'
TARGET_COMMENT = 'comment'
TARGET_TYPES = (TARGET_CAMPAIGN, TARGET_COMMENT)

# 交互种类
KIND_REACTION = 'reaction'
KIND_EMOJI = 'emoji'
KIND_BOOKMARK = 'bookmark'
KIND_PARTICIPATION = 'participation'
KINDS = (KIND_REACTION, KIND_EMOJI, KIND_BOOKMARK, KIND_PARTICIPATION)
SINGLETON_KINDS = (KIND_REACTION, KIND_BOOKMARK, KIND_PARTICIPATION)

# 每种对象允许的交互种类，评论只支持表情回应
ALLOWED_KINDS = {
    TARGET_CAMPAIGN: KINDS,
    TARGET_COMMENT: (KIND_EMOJI,),
}

# 快速反馈类型
REACTION_STILL_WORKS = 'still_works'
REACTION_EXPIRED = 'expired'
REACTION_INFO_INCORRECT = 'info_incorrect'
REACTION_TYPES = (REACTION_STILL_WORKS, REACTION_EXPIRED, REACTION_INFO_INCORRECT)

CATEGORY_BOOKMARK = 'bookmark'
CATEGORY_PARTICIPATION = 'participation'

EMOJI_PREFIX = 'emoji:'
EMOJI_MAX_LENGTH = 10


def utf16_length(text):
    return len(text.encode('utf-16-le')) // 2


def validate_emoji(glyph):
    """表情长度 1-10 (按 UTF-16 码元计，与前端 String.length 一致)，不允许首尾空白"""
    if not isinstance(glyph, str) or not glyph or glyph.strip() != glyph:
        raise ValidationFailed('Invalid emoji')
    if utf16_length(glyph) > EMOJI_MAX_LENGTH:
        raise ValidationFailed('Invalid emoji')
    return glyph


def emoji_category(glyph):
    return EMOJI_PREFIX + validate_emoji(glyph)


def parse_category(category):
    """把 category 拆成 (kind, slot)，非法值抛出 ValidationFailed"""
    if category in REACTION_TYPES:
        return KIND_REACTION, ''
    if category == CATEGORY_BOOKMARK:
        return KIND_BOOKMARK, ''
    if category == CATEGORY_PARTICIPATION:
        return KIND_PARTICIPATION, ''
    if isinstance(category, str) and category.startswith(EMOJI_PREFIX):
        glyph = validate_emoji(category[len(EMOJI_PREFIX):])
        return KIND_EMOJI, glyph
    raise ValidationFailed(f'Invalid category: {category}')


class Interaction(db.Model):
    """用户与活动/评论的一条交互记录"""
    __tablename__ = 'interactions'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)
    target_type = Column(String(20), nullable=False)  # 'campaign' 或 'comment'
    target_id = Column(String(64), nullable=False)
    kind = Column(String(20), nullable=False)  # 'reaction', 'emoji', 'bookmark', 'participation'
    slot = Column(String(16), nullable=False, default='', server_default='')
    category = Column(String(32), nullable=False)
    notes = Column(Text, nullable=True)  # 仅参与记录使用
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'target_type', 'target_id', 'kind', 'slot',
                         name='uq_interactions_subject_target_slot'),
        Index('ix_interactions_target', 'target_type', 'target_id', 'kind'),
    )

    # upsert 冲突判断所依赖的列，与唯一约束保持一致
    UNIQUE_COLUMNS = ('user_id', 'target_type', 'target_id', 'kind', 'slot')

    def __repr__(self):
        return f"<Interaction(user_id={self.user_id}, {self.target_type}_id={self.target_id}, category={self.category})>"

    @property
    def emoji(self):
        return self.slot if self.kind == KIND_EMOJI else None

    def to_dict(self):
        data = {
            'id': self.id,
            'userId': self.user_id,
            'targetType': self.target_type,
            'targetId': self.target_id,
            'kind': self.kind,
            'category': self.category,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.kind == KIND_REACTION:
            data['type'] = self.category
        elif self.kind == KIND_EMOJI:
            data['emoji'] = self.slot
        elif self.kind == KIND_PARTICIPATION:
            data['notes'] = self.notes
        if self.target_type == TARGET_CAMPAIGN:
            data['campaignId'] = self.target_id
        else:
            data['commentId'] = self.target_id
        return data

    @classmethod
    def find(cls, user_id, target_type, target_id, kind, slot=''):
        """按唯一键查找记录"""
        return cls.query.filter_by(
            user_id=user_id,
            target_type=target_type,
            target_id=target_id,
            kind=kind,
            slot=slot
        ).first()

    @classmethod
    def get_user_target_ids(cls, user_id, target_type, kind):
        """获取用户某类交互涉及的对象ID列表 (用于前端批量判断状态)"""
        rows = db.session.query(cls.target_id).filter_by(
            user_id=user_id,
            target_type=target_type,
            kind=kind
        ).order_by(cls.created_at.desc()).all()
        return [row.target_id for row in rows]

    @classmethod
    def count_for_user(cls, user_id, target_type, kind):
        return cls.query.filter_by(user_id=user_id, target_type=target_type, kind=kind).count()
