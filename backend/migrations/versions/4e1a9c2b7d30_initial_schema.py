"""initial_schema

Revision ID: 4e1a9c2b7d30
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4e1a9c2b7d30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

role_enum = sa.Enum('ADMIN', 'COMPANY_OWNER', 'TEAM_MEMBER', name='role')
application_status_enum = sa.Enum(
    'DRAFT', 'IN_REVIEW', 'SUBMITTED', 'AWARDED', 'REJECTED', 'WITHDRAWN',
    name='applicationstatus',
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'companies',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('industry', sa.String(), nullable=True),
        sa.Column('business_type', sa.String(), nullable=True),
        sa.Column('company_size', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('naics_codes', sa.JSON(), nullable=True),
        sa.Column('certifications', sa.JSON(), nullable=True),
        sa.Column('target_jurisdictions', sa.JSON(), nullable=True),
        sa.Column('subscription_tier', sa.String(), nullable=True),
        sa.Column('subscription_status', sa.String(), nullable=True),
        sa.Column('stripe_customer_id', sa.String(), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_companies_slug', 'companies', ['slug'], unique=True)
    op.create_index('ix_companies_stripe_customer_id', 'companies', ['stripe_customer_id'])
    op.create_index('ix_companies_stripe_subscription_id', 'companies', ['stripe_subscription_id'])

    op.create_table(
        'profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('role', role_enum, nullable=False),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=True),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('onboarding_completed', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_profiles_company_id', 'profiles', ['company_id'])

    op.create_table(
        'opportunities',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('source', sa.String(), nullable=False),
        sa.Column('external_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('agency', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('solicitation_number', sa.String(), nullable=True),
        sa.Column('opportunity_type', sa.String(), nullable=True),
        sa.Column('naics_codes', sa.JSON(), nullable=True),
        sa.Column('set_aside', sa.String(), nullable=True),
        sa.Column('jurisdiction', sa.String(), nullable=False),
        sa.Column('submission_deadline', sa.String(), nullable=True),
        sa.Column('contract_value_min', sa.Float(), nullable=True),
        sa.Column('contract_value_max', sa.Float(), nullable=True),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('raw', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('source', 'external_id', name='uq_opportunities_source_external_id'),
    )

    op.create_table(
        'opportunity_matches',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('opportunity_id', sa.Uuid(), sa.ForeignKey('opportunities.id'), nullable=False),
        sa.Column('match_score', sa.Float(), nullable=False),
        sa.Column('win_probability', sa.Float(), nullable=False),
        sa.Column('reasoning', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            'company_id', 'opportunity_id', name='uq_opportunity_matches_company_opportunity'
        ),
    )
    op.create_index('ix_opportunity_matches_company_id', 'opportunity_matches', ['company_id'])

    op.create_table(
        'applications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('opportunity_id', sa.Uuid(), sa.ForeignKey('opportunities.id'), nullable=False),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('status', application_status_enum, nullable=False),
        sa.Column('responses', sa.JSON(), nullable=True),
        sa.Column('documents', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('quality_score', sa.Float(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            'company_id', 'opportunity_id', name='uq_applications_company_opportunity'
        ),
    )
    op.create_index('ix_applications_company_id', 'applications', ['company_id'])

    op.create_table(
        'ai_cache',
        sa.Column('cache_key', sa.String(128), primary_key=True),
        sa.Column('cache_type', sa.String(64), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('tier', sa.String(32), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('hit_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_ai_cache_expires_at', 'ai_cache', ['expires_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_ai_cache_expires_at', table_name='ai_cache')
    op.drop_table('ai_cache')
    op.drop_index('ix_applications_company_id', table_name='applications')
    op.drop_table('applications')
    op.drop_index('ix_opportunity_matches_company_id', table_name='opportunity_matches')
    op.drop_table('opportunity_matches')
    op.drop_table('opportunities')
    op.drop_index('ix_profiles_company_id', table_name='profiles')
    op.drop_table('profiles')
    op.drop_index('ix_companies_stripe_subscription_id', table_name='companies')
    op.drop_index('ix_companies_stripe_customer_id', table_name='companies')
    op.drop_index('ix_companies_slug', table_name='companies')
    op.drop_table('companies')
    application_status_enum.drop(op.get_bind(), checkfirst=True)
    role_enum.drop(op.get_bind(), checkfirst=True)
