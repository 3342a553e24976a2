"""initial schema: users, binary tree, recruitment, kyc, wallet ledger, purchases

Revision ID: 4f2a9c1d7e10
Revises:
Create Date: 2026-10-17 09:12:31.402118

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4f2a9c1d7e10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _money(name, nullable=False, default=False):
    if default:
        return sa.Column(name, sa.Numeric(18, 2), nullable=nullable, server_default=sa.text('0'))
    return sa.Column(name, sa.Numeric(18, 2), nullable=nullable)


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=80), nullable=True),
        sa.Column('last_name', sa.String(length=80), nullable=True),
        sa.Column('mobile', sa.String(length=20), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('email_verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_hidden', sa.Boolean(), nullable=False),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('left_child_id', sa.Integer(), nullable=True),
        sa.Column('right_child_id', sa.Integer(), nullable=True),
        sa.Column('position', sa.String(length=10), nullable=True),
        sa.Column('level', sa.Integer(), nullable=False),
        _money('package_amount', default=True),
        _money('own_bv', default=True),
        _money('left_bv', default=True),
        _money('right_bv', default=True),
        _money('total_bv', default=True),
        sa.Column('current_rank', sa.String(length=40), nullable=False),
        sa.Column('kyc_status', sa.String(length=20), nullable=False),
        sa.Column('registration_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('activation_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_active_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("position IS NULL OR position IN ('left', 'right')", name='chk_user_position'),
        sa.ForeignKeyConstraint(['sponsor_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['parent_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['left_child_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['right_child_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('left_child_id'),
        sa.UniqueConstraint('right_child_id'),
    )
    with op.batch_alter_table('users') as batch_op:
        batch_op.create_index('idx_user_rank', ['current_rank'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_role'), ['role'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_sponsor_id'), ['sponsor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_parent_id'), ['parent_id'], unique=False)

    op.create_table(
        'email_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('email_tokens') as batch_op:
        batch_op.create_index(batch_op.f('ix_email_tokens_email'), ['email'], unique=False)
        batch_op.create_index(batch_op.f('ix_email_tokens_token'), ['token'], unique=True)

    op.create_table(
        'pending_recruits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('full_name', sa.String(length=160), nullable=False),
        sa.Column('mobile', sa.String(length=20), nullable=True),
        sa.Column('recruiter_id', sa.Integer(), nullable=False),
        sa.Column('upline_id', sa.Integer(), nullable=True),
        _money('package_amount'),
        sa.Column('position', sa.String(length=10), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('upline_decision', sa.String(length=20), nullable=False),
        sa.Column('upline_decision_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('rejected_by', sa.Integer(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('kyc_documents', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['recruiter_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['upline_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['rejected_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('pending_recruits') as batch_op:
        batch_op.create_index(batch_op.f('ix_pending_recruits_email'), ['email'], unique=False)
        batch_op.create_index(batch_op.f('ix_pending_recruits_recruiter_id'), ['recruiter_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_pending_recruits_upline_id'), ['upline_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_pending_recruits_status'), ['status'], unique=False)

    op.create_table(
        'referral_links',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('generated_by', sa.Integer(), nullable=False),
        sa.Column('placement_side', sa.String(length=10), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False),
        sa.Column('used_by', sa.Integer(), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['generated_by'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['used_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('referral_links') as batch_op:
        batch_op.create_index(batch_op.f('ix_referral_links_token'), ['token'], unique=True)
        batch_op.create_index(batch_op.f('ix_referral_links_generated_by'), ['generated_by'], unique=False)

    op.create_table(
        'kyc_documents',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=30), nullable=False),
        sa.Column('document_url', sa.String(length=500), nullable=True),
        sa.Column('document_data', sa.Text(), nullable=True),
        sa.Column('document_content_type', sa.String(length=100), nullable=True),
        sa.Column('document_filename', sa.String(length=255), nullable=True),
        sa.Column('document_size', sa.Integer(), nullable=True),
        sa.Column('document_number', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('document_url IS NOT NULL OR document_data IS NOT NULL', name='chk_kyc_has_content'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'document_type', name='uq_kyc_user_document_type'),
    )
    with op.batch_alter_table('kyc_documents') as batch_op:
        batch_op.create_index(batch_op.f('ix_kyc_documents_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_kyc_documents_status'), ['status'], unique=False)

    op.create_table(
        'wallet_balances',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        _money('balance'),
        _money('total_earnings'),
        _money('total_withdrawals'),
        sa.Column('version', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('wallet_balances') as batch_op:
        batch_op.create_index(batch_op.f('ix_wallet_balances_user_id'), ['user_id'], unique=True)

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        _money('amount'),
        _money('balance_after'),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('reference_id', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('transactions') as batch_op:
        batch_op.create_index(batch_op.f('ix_transactions_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_transactions_reference_id'), ['reference_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_transactions_created_at'), ['created_at'], unique=False)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _money('price'),
        _money('bv'),
        sa.Column('gst', sa.Numeric(5, 2), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('purchase_type', sa.String(length=20), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'purchases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _money('total_amount'),
        _money('total_bv'),
        sa.Column('payment_method', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('delivery_address', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('quantity > 0', name='chk_purchase_quantity'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('purchases') as batch_op:
        batch_op.create_index(batch_op.f('ix_purchases_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_purchases_status'), ['status'], unique=False)
        batch_op.create_index('idx_purchase_user_status', ['user_id', 'status'], unique=False)

    op.create_table(
        'rank_achievements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('rank', sa.String(length=40), nullable=False),
        _money('team_bv'),
        _money('bonus_amount'),
        sa.Column('achieved_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'rank', name='uq_rank_achievement_user_rank'),
    )
    with op.batch_alter_table('rank_achievements') as batch_op:
        batch_op.create_index(batch_op.f('ix_rank_achievements_user_id'), ['user_id'], unique=False)

    op.create_table(
        'withdrawal_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        _money('amount'),
        sa.Column('withdrawal_type', sa.String(length=20), nullable=False),
        sa.Column('bank_account_number', sa.String(length=40), nullable=True),
        sa.Column('bank_ifsc', sa.String(length=20), nullable=True),
        sa.Column('bank_name', sa.String(length=100), nullable=True),
        sa.Column('upi_id', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['processed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('withdrawal_requests') as batch_op:
        batch_op.create_index(batch_op.f('ix_withdrawal_requests_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_withdrawal_requests_status'), ['status'], unique=False)

    op.create_table(
        'franchise_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('franchise_type', sa.String(length=60), nullable=False),
        sa.Column('business_plan', sa.Text(), nullable=True),
        _money('investment_amount', nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('franchise_requests') as batch_op:
        batch_op.create_index(batch_op.f('ix_franchise_requests_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_franchise_requests_status'), ['status'], unique=False)

    op.create_table(
        'support_tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('priority', sa.String(length=20), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('resolution', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('support_tickets') as batch_op:
        batch_op.create_index(batch_op.f('ix_support_tickets_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_support_tickets_status'), ['status'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=40), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('related_id', sa.String(length=64), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('notifications') as batch_op:
        batch_op.create_index(batch_op.f('ix_notifications_user_id'), ['user_id'], unique=False)

    op.create_table(
        'achievers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('achievement_type', sa.String(length=40), nullable=False),
        sa.Column('period', sa.String(length=20), nullable=False),
        _money('amount', nullable=True),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.Column('achieved_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('achievers') as batch_op:
        batch_op.create_index(batch_op.f('ix_achievers_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_achievers_achievement_type'), ['achievement_type'], unique=False)

    op.create_table(
        'cheques',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('cheque_number', sa.String(length=40), nullable=False),
        _money('amount'),
        sa.Column('bank_name', sa.String(length=100), nullable=True),
        sa.Column('issued_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cheque_number'),
    )
    with op.batch_alter_table('cheques') as batch_op:
        batch_op.create_index(batch_op.f('ix_cheques_user_id'), ['user_id'], unique=False)

    op.create_table(
        'news',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=40), nullable=True),
        sa.Column('priority', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    for table in (
        'news', 'cheques', 'achievers', 'notifications', 'support_tickets', 'franchise_requests',
        'withdrawal_requests', 'rank_achievements', 'purchases', 'products', 'transactions',
        'wallet_balances', 'kyc_documents', 'referral_links', 'pending_recruits', 'email_tokens',
        'users',
    ):
        op.drop_table(table)
