"""social security configs + audit

Revision ID: 5e1c0a7d2b91
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5e1c0a7d2b91"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = ("pension", "medical", "unemployment", "injury", "maternity", "housing_fund")


def _rate_columns() -> list:
    cols = []
    for c in CATEGORIES:
        cols.append(sa.Column(f"{c}_personal_rate", sa.Numeric(8, 6), nullable=False))
        cols.append(sa.Column(f"{c}_company_rate", sa.Numeric(8, 6), nullable=False))
        # housing fund keeps the legacy column names for its shared range
        suffix = "_new" if c == "housing_fund" else ""
        cols.append(sa.Column(f"{c}_base_lower{suffix}", sa.Numeric(12, 2), nullable=True))
        cols.append(sa.Column(f"{c}_base_upper{suffix}", sa.Numeric(12, 2), nullable=True))
    return cols


def upgrade() -> None:
    # One row per city; version bumps on each save.
    op.create_table(
        "social_security_configs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("city", sa.String(length=64), nullable=False),

        # Legacy shared ranges (kept as mirrors)
        sa.Column("base_lower", sa.Numeric(12, 2), nullable=False),
        sa.Column("base_upper", sa.Numeric(12, 2), nullable=False),
        sa.Column("housing_fund_base_lower", sa.Numeric(12, 2), nullable=False),
        sa.Column("housing_fund_base_upper", sa.Numeric(12, 2), nullable=False),

        *_rate_columns(),
        sa.Column("medical_personal_fixed", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("medical_company_fixed", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "housing_fund_protection_enabled", sa.Boolean(), nullable=False, server_default=sa.false()
        ),

        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        sa.Column("updated_by", sa.String(length=100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_social_security_configs_city", "social_security_configs", ["city"], unique=True
    )

    # Append-only change log
    op.create_table(
        "social_security_config_audit",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("city", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("snapshot", sa.JSON(), nullable=False),
        sa.Column("changed_by", sa.String(length=100), nullable=True),
        sa.Column(
            "changed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_social_security_config_audit_city", "social_security_config_audit", ["city"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_social_security_config_audit_city", table_name="social_security_config_audit")
    op.drop_table("social_security_config_audit")
    op.drop_index("ix_social_security_configs_city", table_name="social_security_configs")
    op.drop_table("social_security_configs")
