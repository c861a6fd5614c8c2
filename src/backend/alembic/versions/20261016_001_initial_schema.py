"""Initial schema - create all tables

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def _id() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def upgrade() -> None:
    # Create ENUM types
    op.execute("CREATE TYPE userrole AS ENUM ('user', 'admin')")
    op.execute("CREATE TYPE subscriptiontype AS ENUM ('free', 'pro', 'business')")
    op.execute("CREATE TYPE subscriptionstatus AS ENUM ('inactive', 'active', 'expired', 'cancelled')")
    op.execute("CREATE TYPE tenderstatus AS ENUM ('active', 'closed', 'expired')")
    op.execute("CREATE TYPE rfqstatus AS ENUM ('open', 'awarded', 'closed')")
    op.execute("CREATE TYPE quotestatus AS ENUM ('pending', 'accepted', 'rejected')")
    op.execute("CREATE TYPE consortiumstatus AS ENUM ('forming', 'active', 'closed')")
    op.execute("CREATE TYPE memberrole AS ENUM ('lead', 'member')")
    op.execute("CREATE TYPE automationstatus AS ENUM ('completed', 'failed')")

    # Create profiles table
    op.create_table(
        'profiles',
        _id(),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('company_name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('role', sa.Enum('user', 'admin', name='userrole', create_type=False), nullable=False, server_default='user'),
        sa.Column('subscription_type', sa.Enum('free', 'pro', 'business', name='subscriptiontype', create_type=False), nullable=False, server_default='free'),
        sa.Column('subscription_status', sa.Enum('inactive', 'active', 'expired', 'cancelled', name='subscriptionstatus', create_type=False), nullable=False, server_default='inactive'),
        sa.Column('subscription_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('subscription_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_early_user', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('loyalty_points', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'])
    op.create_index('ix_profiles_subscription_type', 'profiles', ['subscription_type'])
    op.create_index('ix_profiles_subscription_status', 'profiles', ['subscription_status'])
    op.create_index('ix_profiles_subscription_end_date', 'profiles', ['subscription_end_date'])

    # Create user_preferences table
    op.create_table(
        'user_preferences',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('sectors', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('counties', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('keywords', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('eligibility_types', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('budget_min', sa.Numeric(15, 2), nullable=True),
        sa.Column('budget_max', sa.Numeric(15, 2), nullable=True),
        sa.Column('notification_email', sa.Boolean, nullable=False, server_default='true'),
        sa.Column('notification_push', sa.Boolean, nullable=False, server_default='true'),
        sa.Column('notification_sms', sa.Boolean, nullable=False, server_default='false'),
        *_timestamps(),
    )
    op.create_index('ix_user_preferences_user_id', 'user_preferences', ['user_id'])

    # Create tenders table
    op.create_table(
        'tenders',
        _id(),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('organization', sa.String(300), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('location', sa.String(100), nullable=False, server_default='Kenya'),
        sa.Column('budget_estimate', sa.Numeric(15, 2), nullable=True, comment='Estimated value in KES'),
        sa.Column('deadline', sa.Date, nullable=False),
        sa.Column('status', sa.Enum('active', 'closed', 'expired', name='tenderstatus', create_type=False), nullable=False, server_default='active'),
        sa.Column('tender_number', sa.String(100), nullable=True),
        sa.Column('requirements', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('contact_phone', sa.String(50), nullable=True),
        sa.Column('source_url', sa.String(1000), nullable=True),
        sa.Column('scraped_from', sa.String(100), nullable=True, comment='Source key the tender was scraped from; NULL for manual entries'),
        sa.Column('raw_data', postgresql.JSONB, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_tenders_title', 'tenders', ['title'])
    op.create_index('ix_tenders_organization', 'tenders', ['organization'])
    op.create_index('ix_tenders_category', 'tenders', ['category'])
    op.create_index('ix_tenders_location', 'tenders', ['location'])
    op.create_index('ix_tenders_deadline', 'tenders', ['deadline'])
    op.create_index('ix_tenders_status', 'tenders', ['status'])
    op.create_index('ix_tenders_tender_number', 'tenders', ['tender_number'])

    # Create saved_tenders table
    op.create_table(
        'saved_tenders',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tender_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenders.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'tender_id', name='uq_saved_tenders_user_tender'),
    )
    op.create_index('ix_saved_tenders_user_id', 'saved_tenders', ['user_id'])
    op.create_index('ix_saved_tenders_tender_id', 'saved_tenders', ['tender_id'])

    # Create user_alerts table
    op.create_table(
        'user_alerts',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('message', sa.Text, nullable=False, server_default=''),
        sa.Column('data', postgresql.JSONB, nullable=False, server_default='{}'),
        sa.Column('is_read', sa.Boolean, nullable=False, server_default='false'),
        *_timestamps(),
    )
    op.create_index('ix_user_alerts_user_id', 'user_alerts', ['user_id'])
    op.create_index('ix_user_alerts_is_read', 'user_alerts', ['is_read'])
    op.create_index('ix_user_alerts_user_type', 'user_alerts', ['user_id', 'type'])

    # Create historical_tender_awards table
    op.create_table(
        'historical_tender_awards',
        _id(),
        sa.Column('organization', sa.String(300), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('location', sa.String(100), nullable=False, server_default='Kenya'),
        sa.Column('tender_title', sa.Text, nullable=True),
        sa.Column('awarded_amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('winner_name', sa.String(300), nullable=True),
        sa.Column('winner_type', sa.String(50), nullable=True, comment='youth, women, pwd, consortium, sme, large_enterprise'),
        sa.Column('award_date', sa.Date, nullable=True),
        sa.Column('bid_count', sa.Integer, nullable=True),
        sa.Column('competition_level', sa.String(20), nullable=True, comment='low, medium, high'),
        sa.Column('source', sa.String(100), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_historical_tender_awards_category', 'historical_tender_awards', ['category'])
    op.create_index('ix_historical_tender_awards_location', 'historical_tender_awards', ['location'])

    # Create consortiums tables
    op.create_table(
        'consortiums',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('tender_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenders.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('max_members', sa.Integer, nullable=False, server_default='5'),
        sa.Column('required_skills', sa.Text, nullable=True),
        sa.Column('status', sa.Enum('forming', 'active', 'closed', name='consortiumstatus', create_type=False), nullable=False, server_default='forming'),
        *_timestamps(),
    )
    op.create_index('ix_consortiums_tender_id', 'consortiums', ['tender_id'])
    op.create_index('ix_consortiums_created_by', 'consortiums', ['created_by'])

    op.create_table(
        'consortium_members',
        _id(),
        sa.Column('consortium_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('consortiums.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.Enum('lead', 'member', name='memberrole', create_type=False), nullable=False, server_default='member'),
        sa.Column('expertise', sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('consortium_id', 'user_id', name='uq_consortium_members_user'),
    )
    op.create_index('ix_consortium_members_consortium_id', 'consortium_members', ['consortium_id'])
    op.create_index('ix_consortium_members_user_id', 'consortium_members', ['user_id'])

    # Create rfq tables
    op.create_table(
        'rfqs',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('location', sa.String(100), nullable=True),
        sa.Column('budget', sa.Numeric(15, 2), nullable=True),
        sa.Column('deadline', sa.Date, nullable=True),
        sa.Column('status', sa.Enum('open', 'awarded', 'closed', name='rfqstatus', create_type=False), nullable=False, server_default='open'),
        *_timestamps(),
    )
    op.create_index('ix_rfqs_user_id', 'rfqs', ['user_id'])
    op.create_index('ix_rfqs_category', 'rfqs', ['category'])
    op.create_index('ix_rfqs_status', 'rfqs', ['status'])

    op.create_table(
        'rfq_quotes',
        _id(),
        sa.Column('rfq_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('rfqs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('delivery_days', sa.Integer, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('status', sa.Enum('pending', 'accepted', 'rejected', name='quotestatus', create_type=False), nullable=False, server_default='pending'),
        *_timestamps(),
    )
    op.create_index('ix_rfq_quotes_rfq_id', 'rfq_quotes', ['rfq_id'])
    op.create_index('ix_rfq_quotes_supplier_id', 'rfq_quotes', ['supplier_id'])

    # Create analytics tables
    op.create_table(
        'tender_analytics',
        _id(),
        sa.Column('tender_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenders.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('views_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('saves_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('last_viewed', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_tender_analytics_tender_id', 'tender_analytics', ['tender_id'])

    op.create_table(
        'ai_analyses',
        _id(),
        sa.Column('tender_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tenders.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('estimated_value_min', sa.Numeric(15, 2), nullable=True),
        sa.Column('estimated_value_max', sa.Numeric(15, 2), nullable=True),
        sa.Column('win_probability', sa.Integer, nullable=True),
        sa.Column('confidence_score', sa.Numeric(4, 2), nullable=True),
        sa.Column('recommendations', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('analysis_data', postgresql.JSONB, nullable=False, server_default='{}'),
        sa.Column('model_version', sa.String(50), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_ai_analyses_tender_id', 'ai_analyses', ['tender_id'])

    op.create_table(
        'automation_logs',
        _id(),
        sa.Column('function_name', sa.String(100), nullable=False),
        sa.Column('status', sa.Enum('completed', 'failed', name='automationstatus', create_type=False), nullable=False),
        sa.Column('result_data', postgresql.JSONB, nullable=False, server_default='{}'),
        sa.Column('error_message', sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_automation_logs_function_name', 'automation_logs', ['function_name'])


def downgrade() -> None:
    op.drop_table('automation_logs')
    op.drop_table('ai_analyses')
    op.drop_table('tender_analytics')
    op.drop_table('rfq_quotes')
    op.drop_table('rfqs')
    op.drop_table('consortium_members')
    op.drop_table('consortiums')
    op.drop_table('historical_tender_awards')
    op.drop_table('user_alerts')
    op.drop_table('saved_tenders')
    op.drop_table('tenders')
    op.drop_table('user_preferences')
    op.drop_table('profiles')

    op.execute("DROP TYPE IF EXISTS automationstatus")
    op.execute("DROP TYPE IF EXISTS memberrole")
    op.execute("DROP TYPE IF EXISTS consortiumstatus")
    op.execute("DROP TYPE IF EXISTS quotestatus")
    op.execute("DROP TYPE IF EXISTS rfqstatus")
    op.execute("DROP TYPE IF EXISTS tenderstatus")
    op.execute("DROP TYPE IF EXISTS subscriptionstatus")
    op.execute("DROP TYPE IF EXISTS subscriptiontype")
    op.execute("DROP TYPE IF EXISTS userrole")
