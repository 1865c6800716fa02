"""
模型包初始化文件。

导入所有模型类，使其可以通过 freepool.models.ModelName 的方式被访问，
同时保证 Flask-Migrate 能看到所有表。
"""
from .campaign import Campaign
from .comment import Comment
from .interaction import Interaction

__all__ = [
    'Campaign',
    'Comment',
    'Interaction',
]
