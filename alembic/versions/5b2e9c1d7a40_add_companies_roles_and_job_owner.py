"""add companies, user roles and job ownership

Revision ID: 5b2e9c1d7a40
Revises:
Create Date: 2026-03-14 09:41:02.117305

Handles databases whose users/jobs/company_settings tables were created by
Base.metadata.create_all() before multi-tenancy. Adds missing columns
idempotently and creates the companies table if missing.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5b2e9c1d7a40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _column_exists(table_name, column_name):
    bind = op.get_bind()
    insp = inspect(bind)
    columns = [c["name"] for c in insp.get_columns(table_name)]
    return column_name in columns


def _table_exists(table_name):
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def _add_missing(table_name, columns):
    for column in columns:
        if not _column_exists(table_name, column.name):
            op.add_column(table_name, column)


def upgrade() -> None:
    if not _table_exists("companies"):
        op.create_table(
            "companies",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )

    if _table_exists("users"):
        # Plain VARCHAR with a server default so existing rows become regular users
        _add_missing("users", [
            sa.Column("role", sa.String(), nullable=False, server_default="USER"),
            sa.Column("company_id", sa.Integer(), nullable=True),
        ])

    if _table_exists("jobs"):
        _add_missing("jobs", [
            sa.Column("user_id", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        ])

    if _table_exists("company_settings"):
        _add_missing("company_settings", [
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("phone", sa.String(), nullable=True),
            sa.Column("email", sa.String(), nullable=True),
        ])


def downgrade() -> None:
    if _table_exists("company_settings"):
        for col_name in ["email", "phone", "address"]:
            if _column_exists("company_settings", col_name):
                op.drop_column("company_settings", col_name)

    if _table_exists("jobs"):
        for col_name in ["updated_at", "created_at", "user_id"]:
            if _column_exists("jobs", col_name):
                op.drop_column("jobs", col_name)

    if _table_exists("users"):
        for col_name in ["company_id", "role"]:
            if _column_exists("users", col_name):
                op.drop_column("users", col_name)

    if _table_exists("companies"):
        op.drop_table("companies")
