"""
定义活动评论模型 (Comment)。
用于存储用户对活动的详细反馈，支持一层层的回复 (parent_id)，删除为软删除。

注意: 如果新增、删除或修改功能，必须在这开头的注释中同步修改，如发现功能与注释描述不同，也可以在确定后修改。
"""
from freepool import db
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, text
from sqlalchemy.orm import relationship

from .campaign import generate_uuid


class Comment(db.Model):
    __tablename__ = 'comments'

    id = Column(String(64), primary_key=True, default=generate_uuid)
    campaign_id = Column(String(64), ForeignKey('campaigns.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    parent_id = Column(String(64), nullable=True, index=True)
    content = Column(Text, nullable=False)
    is_marked_useful = Column(Boolean, nullable=False, default=False, server_default=text('false'))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    campaign = relationship('Campaign', backref='comments')

    def __repr__(self):
        return f"<Comment(id={self.id}, campaign_id={self.campaign_id}, user_id={self.user_id})>"

    def to_dict(self):
        return {
            'id': self.id,
            'campaignId': self.campaign_id,
            'userId': self.user_id,
            'parentId': self.parent_id,
            'content': self.content,
            'isMarkedUseful': self.is_marked_useful,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def get_active(cls, comment_id):
        """获取未删除的评论，不存在返回 None"""
        return cls.query.filter(cls.id == comment_id, cls.deleted_at.is_(None)).first()
