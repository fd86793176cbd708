"""initial schema: users, email_otps, reviews, site_settings, audit_logs

Revision ID: 4f1c2a9d7e10
Revises:
Create Date: 2026-10-17 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


revision = '4f1c2a9d7e10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(30), nullable=False, server_default=''),
        sa.Column('userType', sa.String(20), nullable=False, server_default='seller'),
        sa.Column('isActive', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('createdAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updatedAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'email_otps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('otpCode', sa.String(10), nullable=False),
        sa.Column('expiresAt', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('createdAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_email_otps_id', 'email_otps', ['id'])
    op.create_index('ix_email_otps_email', 'email_otps', ['email'], unique=True)
    op.create_index('ix_email_otps_expiresAt', 'email_otps', ['expiresAt'])

    review_status = sa.Enum('pending', 'approved', 'rejected', name='reviewstatus')
    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('targetId', sa.String(100), nullable=False),
        sa.Column('targetType', sa.String(50), nullable=False, server_default='property'),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(200), nullable=True),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('status', review_status, nullable=False, server_default='pending'),
        sa.Column('adminNote', sa.Text(), nullable=True),
        sa.Column('userId', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('moderatedById', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('moderatedAt', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('createdAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updatedAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='chk_review_rating_range'),
    )
    op.create_index('ix_reviews_id', 'reviews', ['id'])
    op.create_index('ix_reviews_targetId', 'reviews', ['targetId'])
    op.create_index('ix_reviews_targetType', 'reviews', ['targetType'])
    op.create_index('ix_reviews_status', 'reviews', ['status'])

    op.create_table(
        'site_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('group', sa.String(50), nullable=False, server_default='general'),
        sa.Column('value', sa.Text(), nullable=False, server_default=''),
        sa.Column('updatedAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_site_settings_id', 'site_settings', ['id'])
    op.create_index('ix_site_settings_key', 'site_settings', ['key'], unique=True)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('userId', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('actorEmail', sa.String(255), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entityType', sa.String(50), nullable=False),
        sa.Column('entityKey', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('createdAt', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audit_logs_id', 'audit_logs', ['id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('site_settings')
    op.drop_table('reviews')
    sa.Enum(name='reviewstatus').drop(op.get_bind(), checkfirst=True)
    op.drop_table('email_otps')
    op.drop_table('users')
