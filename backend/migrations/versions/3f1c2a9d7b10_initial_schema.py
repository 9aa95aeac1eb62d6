"""tenants, users, refresh tokens and domain claims

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column(
            'created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            'updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def _enum(*values, name):
    return sa.Enum(*values, name=name, native_enum=False)


def upgrade():
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column(
            'status',
            _enum('PENDING', 'ACTIVE', 'SUSPENDED', 'INACTIVE', name='tenant_status'),
            nullable=False,
        ),
        sa.Column(
            'plan',
            _enum('FREE', 'STARTER', 'PROFESSIONAL', 'ENTERPRISE', name='subscription_plan'),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_tenants')),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=254), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column(
            'role', _enum('USER', 'AGENT', 'MANAGER', 'ADMIN', name='user_role'), nullable=False
        ),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['tenant_id'], ['tenants.id'],
            name=op.f('fk_users_tenant_id_tenants'), ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'])
    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by_ip', sa.String(length=45), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=100), nullable=True),
        sa.Column('revoked_by_ip', sa.String(length=45), nullable=True),
        sa.Column('replaced_by_token_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_refresh_tokens_user_id_users'), ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['replaced_by_token_id'], ['refresh_tokens.id'],
            name='fk_refresh_tokens_replaced_by', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_refresh_tokens')),
    )
    op.create_index('uq_refresh_tokens_token_hash', 'refresh_tokens', ['token_hash'], unique=True)
    op.create_index('ix_refresh_tokens_user_expires', 'refresh_tokens', ['user_id', 'expires_at'])
    op.create_table(
        'domains',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('hostname', sa.String(length=253), nullable=False),
        sa.Column('verification_code', sa.String(length=64), nullable=False),
        sa.Column('api_key', sa.String(length=64), nullable=False),
        sa.Column(
            'status',
            _enum('PENDING', 'VERIFIED', 'FAILED', 'SUSPENDED', name='domain_status'),
            nullable=False,
        ),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('verification_attempts', sa.Integer(), nullable=False),
        sa.Column('last_verification_attempt_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_verification_error', sa.String(length=500), nullable=True),
        sa.Column('next_verification_attempt_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['tenant_id'], ['tenants.id'],
            name=op.f('fk_domains_tenant_id_tenants'), ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_domains')),
        sa.UniqueConstraint('tenant_id', 'hostname', name='uq_domains_tenant_hostname'),
        sa.UniqueConstraint('api_key', name='uq_domains_api_key'),
    )
    op.create_index('ix_domains_hostname', 'domains', ['hostname'])
    op.create_index(
        'ix_domains_due', 'domains', ['status', 'is_verified', 'next_verification_attempt_at']
    )


def downgrade():
    op.drop_index('ix_domains_due', table_name='domains')
    op.drop_index('ix_domains_hostname', table_name='domains')
    op.drop_table('domains')
    op.drop_index('ix_refresh_tokens_user_expires', table_name='refresh_tokens')
    op.drop_index('uq_refresh_tokens_token_hash', table_name='refresh_tokens')
    op.drop_table('refresh_tokens')
    op.drop_index('ix_users_tenant_id', table_name='users')
    op.drop_table('users')
    op.drop_table('tenants')
