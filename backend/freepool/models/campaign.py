"""
定义活动模型 (Campaign)。
这里只包含互动子系统需要的字段：状态、截止时间、软删除以及根据用户反馈计算的待核实标记。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from freepool import db
from datetime import datetime
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Text, text

CAMPAIGN_STATUS_PENDING = 'pending'
CAMPAIGN_STATUS_PUBLISHED = 'published'
CAMPAIGN_STATUS_REJECTED = 'rejected'
CAMPAIGN_STATUS_EXPIRED = 'expired'


def generate_uuid():
    return str(uuid.uuid4())


class Campaign(db.Model):
    __tablename__ = 'campaigns'

    id = Column(String(64), primary_key=True, default=generate_uuid)
    slug = Column(String(255), nullable=False, unique=True)
    title = Column(String(500), nullable=False)
    status = Column(String(50), nullable=False, default=CAMPAIGN_STATUS_PENDING, index=True)
    free_credit = Column(Text, nullable=True)
    official_link = Column(Text, nullable=True)
    end_date = Column(DateTime, nullable=True, index=True)
    is_featured = Column(Boolean, nullable=False, default=False, server_default=text('false'))
    needs_verification = Column(Boolean, nullable=False, default=False, server_default=text('false'))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Campaign(id={self.id}, slug={self.slug}, status={self.status})>"

    @property
    def is_expired(self):
        """状态为 expired 或截止时间已过"""
        if self.status == CAMPAIGN_STATUS_EXPIRED:
            return True
        return self.end_date is not None and self.end_date < datetime.utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'slug': self.slug,
            'title': self.title,
            'status': self.status,
            'freeCredit': self.free_credit,
            'officialLink': self.official_link,
            'endDate': self.end_date.isoformat() if self.end_date else None,
            'isFeatured': self.is_featured,
            'needsVerification': self.needs_verification,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def get_active(cls, campaign_id):
        """获取未删除的活动，不存在返回 None"""
        return cls.query.filter(cls.id == campaign_id, cls.deleted_at.is_(None)).first()
