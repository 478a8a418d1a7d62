"""Create galleries, news and user tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 12:00:00.000000

This migration adds:
- galleries / gallery_translations and news / news_translations, with a
  unique (lang, slug) constraint on each translation table
- users, groups, users_groups and throttle
- the default "Users" and "Admin" groups
"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def _translation_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("lang", sa.String(length=10), nullable=False),
        sa.Column("slug", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    ]


def upgrade() -> None:
    # Galleries
    op.create_table(
        "galleries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_galleries_id", "galleries", ["id"], unique=False)

    op.create_table(
        "gallery_translations",
        *_translation_columns(),
        sa.Column("gallery_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["gallery_id"], ["galleries.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("gallery_id", "lang", name="uq_gallery_translation_lang"),
        sa.UniqueConstraint("lang", "slug", name="uq_gallery_translation_slug"),
    )
    op.create_index("ix_gallery_translations_id", "gallery_translations", ["id"], unique=False)
    op.create_index("ix_gallery_translations_lang", "gallery_translations", ["lang"], unique=False)
    op.create_index("ix_gallery_translations_gallery_id", "gallery_translations", ["gallery_id"], unique=False)

    # News
    op.create_table(
        "news",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_news_id", "news", ["id"], unique=False)
    op.create_index("ix_news_date", "news", ["date"], unique=False)

    op.create_table(
        "news_translations",
        *_translation_columns(),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("news_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["news_id"], ["news.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("news_id", "lang", name="uq_news_translation_lang"),
        sa.UniqueConstraint("lang", "slug", name="uq_news_translation_slug"),
    )
    op.create_index("ix_news_translations_id", "news_translations", ["id"], unique=False)
    op.create_index("ix_news_translations_lang", "news_translations", ["lang"], unique=False)
    op.create_index("ix_news_translations_news_id", "news_translations", ["news_id"], unique=False)

    # Users and groups
    groups = op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_groups_id", "groups", ["id"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("activated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("activation_code", sa.String(), nullable=True),
        sa.Column("activated_at", sa.DateTime(), nullable=True),
        sa.Column("reset_password_code", sa.String(), nullable=True),
        sa.Column("persist_code", sa.String(), nullable=True),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_activation_code", "users", ["activation_code"], unique=False)
    op.create_index("ix_users_reset_password_code", "users", ["reset_password_code"], unique=False)

    op.create_table(
        "users_groups",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "group_id"),
    )

    op.create_table(
        "throttle",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("suspended", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("banned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_attempt_at", sa.DateTime(), nullable=True),
        sa.Column("suspended_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("ix_throttle_id", "throttle", ["id"], unique=False)

    # Id 1 is the group new accounts join (settings.default_group_id)
    op.bulk_insert(
        groups,
        [
            {"id": 1, "name": "Users", "permissions": {}},
            {"id": 2, "name": "Admin", "permissions": {"superuser": 1}},
        ],
    )
    if op.get_bind().dialect.name == "postgresql":
        op.execute("SELECT setval('groups_id_seq', (SELECT MAX(id) FROM groups))")


def downgrade() -> None:
    op.drop_index("ix_throttle_id", table_name="throttle")
    op.drop_table("throttle")
    op.drop_table("users_groups")
    op.drop_index("ix_users_reset_password_code", table_name="users")
    op.drop_index("ix_users_activation_code", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_groups_id", table_name="groups")
    op.drop_table("groups")

    op.drop_index("ix_news_translations_news_id", table_name="news_translations")
    op.drop_index("ix_news_translations_lang", table_name="news_translations")
    op.drop_index("ix_news_translations_id", table_name="news_translations")
    op.drop_table("news_translations")
    op.drop_index("ix_news_date", table_name="news")
    op.drop_index("ix_news_id", table_name="news")
    op.drop_table("news")

    op.drop_index("ix_gallery_translations_gallery_id", table_name="gallery_translations")
    op.drop_index("ix_gallery_translations_lang", table_name="gallery_translations")
    op.drop_index("ix_gallery_translations_id", table_name="gallery_translations")
    op.drop_table("gallery_translations")
    op.drop_index("ix_galleries_id", table_name="galleries")
    op.drop_table("galleries")
