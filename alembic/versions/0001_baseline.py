"""Baseline migration - tenants, users, charities, donations and tax records

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-18

Creates the full giving schema. Value objects (addresses, matching program,
gamification, tax summaries, ...) are stored as JSON documents.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')  # For gen_random_uuid()

    # ==========================================================================
    # Companies
    # ==========================================================================
    op.execute('''
        CREATE TABLE companies (
            id UUID DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            domain VARCHAR(255) NOT NULL,
            ein VARCHAR(20),
            industry VARCHAR(100),
            address JSON NOT NULL DEFAULT '{}',
            contact_info JSON NOT NULL DEFAULT '{}',
            subscription JSON NOT NULL DEFAULT '{}',
            matching_program JSON NOT NULL DEFAULT '{}',
            settings JSON NOT NULL DEFAULT '{}',
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT pk_companies PRIMARY KEY (id),
            CONSTRAINT uq_companies_domain UNIQUE (domain)
        )
    ''')

    # ==========================================================================
    # Users
    # ==========================================================================
    op.execute('''
        CREATE TABLE users (
            id UUID DEFAULT gen_random_uuid(),
            email VARCHAR(255) NOT NULL,
            password_hash VARCHAR(255) NOT NULL,
            first_name VARCHAR(100) NOT NULL,
            last_name VARCHAR(100) NOT NULL,
            role VARCHAR(30) NOT NULL DEFAULT 'employee',
            company_id UUID,
            employee_id VARCHAR(50),
            department VARCHAR(100),
            position VARCHAR(100),
            phone VARCHAR(30),
            is_active BOOLEAN NOT NULL DEFAULT true,
            is_verified BOOLEAN NOT NULL DEFAULT false,
            token_version INTEGER NOT NULL DEFAULT 1,
            preferences JSON NOT NULL DEFAULT '{}',
            gamification JSON NOT NULL DEFAULT '{}',
            last_login_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT pk_users PRIMARY KEY (id),
            CONSTRAINT uq_users_email UNIQUE (email),
            CONSTRAINT uq_users_company_employee_id UNIQUE (company_id, employee_id),
            CONSTRAINT fk_users_company_id_companies FOREIGN KEY (company_id)
                REFERENCES companies (id) ON DELETE RESTRICT
        )
    ''')
    op.execute('CREATE INDEX ix_users_company_id ON users (company_id)')
    op.execute('CREATE INDEX idx_users_company_active ON users (company_id, is_active)')

    # ==========================================================================
    # Charities
    # ==========================================================================
    op.execute('''
        CREATE TABLE charities (
            id UUID DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            ein VARCHAR(20) NOT NULL,
            description TEXT NOT NULL,
            mission TEXT,
            category VARCHAR(30) NOT NULL,
            tags JSON NOT NULL DEFAULT '[]',
            address JSON NOT NULL DEFAULT '{}',
            contact_info JSON NOT NULL DEFAULT '{}',
            verification JSON NOT NULL DEFAULT '{}',
            impact JSON NOT NULL DEFAULT '{}',
            donation_info JSON NOT NULL DEFAULT '{}',
            images JSON NOT NULL DEFAULT '{}',
            is_featured BOOLEAN NOT NULL DEFAULT false,
            is_active BOOLEAN NOT NULL DEFAULT true,
            total_donations NUMERIC(14, 2) NOT NULL DEFAULT 0,
            total_donors INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT pk_charities PRIMARY KEY (id),
            CONSTRAINT uq_charities_ein UNIQUE (ein)
        )
    ''')
    op.execute('CREATE INDEX ix_charities_name ON charities (name)')
    op.execute('CREATE INDEX idx_charities_category_active ON charities (category, is_active)')

    # ==========================================================================
    # Donations
    # ==========================================================================
    op.execute('''
        CREATE TABLE donations (
            id UUID DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL,
            company_id UUID NOT NULL,
            charity_id UUID NOT NULL,
            amount NUMERIC(12, 2) NOT NULL,
            matching_amount NUMERIC(12, 2) NOT NULL DEFAULT 0,
            total_amount NUMERIC(12, 2) NOT NULL,
            currency VARCHAR(3) NOT NULL DEFAULT 'USD',
            donation_type VARCHAR(30) NOT NULL DEFAULT 'one_time',
            frequency VARCHAR(30),
            payment_method VARCHAR(30) NOT NULL DEFAULT 'direct_payment',
            payroll_info JSON NOT NULL DEFAULT '{}',
            status VARCHAR(30) NOT NULL DEFAULT 'pending',
            processing_info JSON NOT NULL DEFAULT '{}',
            tax_info JSON NOT NULL DEFAULT '{}',
            is_anonymous BOOLEAN NOT NULL DEFAULT false,
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT pk_donations PRIMARY KEY (id),
            CONSTRAINT ck_donations_amount_positive CHECK (amount > 0),
            CONSTRAINT ck_donations_matching_non_negative CHECK (matching_amount >= 0),
            CONSTRAINT fk_donations_user_id_users FOREIGN KEY (user_id)
                REFERENCES users (id) ON DELETE RESTRICT,
            CONSTRAINT fk_donations_company_id_companies FOREIGN KEY (company_id)
                REFERENCES companies (id) ON DELETE RESTRICT,
            CONSTRAINT fk_donations_charity_id_charities FOREIGN KEY (charity_id)
                REFERENCES charities (id) ON DELETE RESTRICT
        )
    ''')
    op.execute('CREATE INDEX ix_donations_status ON donations (status)')
    op.execute('CREATE INDEX idx_donations_user_created ON donations (user_id, created_at)')
    op.execute('CREATE INDEX idx_donations_company_created ON donations (company_id, created_at)')
    op.execute('CREATE INDEX idx_donations_charity_status ON donations (charity_id, status)')

    # ==========================================================================
    # Tax records
    # ==========================================================================
    op.execute('''
        CREATE TABLE tax_records (
            id UUID DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL,
            company_id UUID NOT NULL,
            tax_year INTEGER NOT NULL,
            donations JSON NOT NULL DEFAULT '[]',
            summary JSON NOT NULL DEFAULT '{}',
            documents JSON NOT NULL DEFAULT '{}',
            status VARCHAR(30) NOT NULL DEFAULT 'draft',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT pk_tax_records PRIMARY KEY (id),
            CONSTRAINT uq_tax_records_user_year UNIQUE (user_id, tax_year),
            CONSTRAINT fk_tax_records_user_id_users FOREIGN KEY (user_id)
                REFERENCES users (id) ON DELETE CASCADE,
            CONSTRAINT fk_tax_records_company_id_companies FOREIGN KEY (company_id)
                REFERENCES companies (id) ON DELETE CASCADE
        )
    ''')
    op.execute('CREATE INDEX ix_tax_records_company_id ON tax_records (company_id)')


def downgrade() -> None:
    """Drop all tables."""
    op.execute('DROP TABLE IF EXISTS tax_records')
    op.execute('DROP TABLE IF EXISTS donations')
    op.execute('DROP TABLE IF EXISTS charities')
    op.execute('DROP TABLE IF EXISTS users')
    op.execute('DROP TABLE IF EXISTS companies')
