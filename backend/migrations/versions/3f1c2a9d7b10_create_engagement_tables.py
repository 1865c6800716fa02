"""Create campaigns, comments and unified interactions tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # 活动表 (互动子系统需要的字段)
    op.create_table('campaigns',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, comment='pending, published, rejected, expired'),
        sa.Column('free_credit', sa.Text(), nullable=True),
        sa.Column('official_link', sa.Text(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('needs_verification', sa.Boolean(), nullable=False, server_default=sa.text('false'),
                  comment='根据用户反馈计算的待核实标记'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )
    with op.batch_alter_table('campaigns', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_campaigns_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_campaigns_end_date'), ['end_date'], unique=False)

    # 评论表，parent_id 指向同一活动下的父评论
    op.create_table('comments',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('campaign_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('parent_id', sa.String(length=64), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_marked_useful', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('comments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_comments_campaign_id'), ['campaign_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_comments_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_comments_parent_id'), ['parent_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_comments_created_at'), ['created_at'], unique=False)

    # 统一交互表：反馈、表情回应、收藏、参与
    op.create_table('interactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('target_type', sa.String(length=20), nullable=False, comment='交互对象类型: campaign, comment'),
        sa.Column('target_id', sa.String(length=64), nullable=False, comment='对象ID'),
        sa.Column('kind', sa.String(length=20), nullable=False, comment='交互种类: reaction, emoji, bookmark, participation'),
        sa.Column('slot', sa.String(length=16), nullable=False, server_default='', comment='表情回应为表情本身，其余为空字符串'),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'target_type', 'target_id', 'kind', 'slot',
                            name='uq_interactions_subject_target_slot')
    )
    with op.batch_alter_table('interactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_interactions_user_id'), ['user_id'], unique=False)
        batch_op.create_index('ix_interactions_target', ['target_type', 'target_id', 'kind'], unique=False)


def downgrade():
    with op.batch_alter_table('interactions', schema=None) as batch_op:
        batch_op.drop_index('ix_interactions_target')
        batch_op.drop_index(batch_op.f('ix_interactions_user_id'))
    op.drop_table('interactions')

    with op.batch_alter_table('comments', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_comments_created_at'))
        batch_op.drop_index(batch_op.f('ix_comments_parent_id'))
        batch_op.drop_index(batch_op.f('ix_comments_user_id'))
        batch_op.drop_index(batch_op.f('ix_comments_campaign_id'))
    op.drop_table('comments')

    with op.batch_alter_table('campaigns', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_campaigns_end_date'))
        batch_op.drop_index(batch_op.f('ix_campaigns_status'))
    op.drop_table('campaigns')
