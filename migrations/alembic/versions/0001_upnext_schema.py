"""UpNext schema - users, groups, invitations, queues, media cache

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the account/group tables, the normalized queue tables and one
media cache table per media type. Column types are portable between
PostgreSQL and SQLite.
"""

from collections.abc import Callable, Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


MEDIA_TABLES: dict[str, Callable[[], list[sa.Column]]] = {
    "movies": lambda: [
        sa.Column("director", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("release_date", sa.Text(), nullable=True),
        sa.Column("poster_path", sa.Text(), nullable=True),
        sa.Column("cast", sa.JSON(), nullable=True),
        sa.Column("genres", sa.JSON(), nullable=True),
        sa.Column("runtime", sa.Integer(), nullable=True),
    ],
    "tv_shows": lambda: [
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("poster_path", sa.Text(), nullable=True),
        sa.Column("first_air_date", sa.Text(), nullable=True),
        sa.Column("last_air_date", sa.Text(), nullable=True),
        sa.Column("cast", sa.JSON(), nullable=True),
        sa.Column("genres", sa.JSON(), nullable=True),
        sa.Column("creator", sa.Text(), nullable=True),
        sa.Column("total_episodes", sa.Integer(), nullable=True),
        sa.Column("total_seasons", sa.Integer(), nullable=True),
    ],
    "albums": lambda: [
        sa.Column("artist", sa.Text(), nullable=True),
        sa.Column("label", sa.Text(), nullable=True),
        sa.Column("cover_art", sa.Text(), nullable=True),
        sa.Column("release_date", sa.Text(), nullable=True),
        sa.Column("tracks", sa.JSON(), nullable=True),
    ],
    "books": lambda: [
        sa.Column("authors", sa.JSON(), nullable=True),
        sa.Column("synopsis", sa.Text(), nullable=True),
        sa.Column("publisher", sa.Text(), nullable=True),
        sa.Column("cover_art", sa.Text(), nullable=True),
        sa.Column("date_published", sa.Text(), nullable=True),
        sa.Column("pages", sa.Integer(), nullable=True),
    ],
    "video_games": lambda: [
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("release_date", sa.Text(), nullable=True),
        sa.Column("cover_art", sa.Text(), nullable=True),
        sa.Column("genres", sa.JSON(), nullable=True),
        sa.Column("companies", sa.JSON(), nullable=True),
        sa.Column("platforms", sa.JSON(), nullable=True),
    ],
    "podcasts": lambda: [
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_art", sa.Text(), nullable=True),
        sa.Column("publisher", sa.Text(), nullable=True),
        sa.Column("latest_episode_date", sa.Text(), nullable=True),
        sa.Column("episodes", sa.JSON(), nullable=True),
    ],
}


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    # ==========================================================================
    # users table
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("last_name", sa.Text(), nullable=True),
        _created_at("date_joined"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    # ==========================================================================
    # groups / group_members / invitations
    # ==========================================================================
    op.create_table(
        "groups",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("creator", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("length(name) BETWEEN 1 AND 100", name="ck_groups_name_length"),
    )

    op.create_table(
        "group_members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("group_id", sa.Text(), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        _created_at("joined_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("group_id", "username", name="uq_group_members_group_username"),
    )
    op.create_index("idx_group_members_username", "group_members", ["username"])

    op.create_table(
        "invitations",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("group_id", sa.Text(), nullable=False),
        sa.Column("invited_by", sa.Text(), nullable=False),
        sa.Column("invited_user", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), server_default=sa.text("'pending'"), nullable=False),
        _created_at(),
        _created_at("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')",
            name="ck_invitations_status",
        ),
    )
    op.create_index(
        "idx_invitations_invited_user_status", "invitations", ["invited_user", "status"]
    )
    op.create_index("idx_invitations_group_status", "invitations", ["group_id", "status"])

    # ==========================================================================
    # queues / queue_users / queue_items
    # ==========================================================================
    op.create_table(
        "queues",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("media_type", sa.Text(), nullable=False),
        sa.Column("media", sa.Text(), nullable=False),
        sa.Column("group_id", sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "media_type IN ('Movie', 'TV', 'Album', 'Book', 'VideoGame', 'Podcast')",
            name="ck_queues_media_type",
        ),
    )
    op.create_index("idx_queues_media_type_group", "queues", ["media_type", "group_id"])

    op.create_table(
        "queue_users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("queue_id", sa.Text(), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["queue_id"], ["queues.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("queue_id", "username", name="uq_queue_users_queue_username"),
    )
    op.create_index("idx_queue_users_username", "queue_users", ["username"])

    # One row per (queue, media id); the unique key keeps an id in at most
    # one bucket. Row id order is insertion order within each bucket.
    op.create_table(
        "queue_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("queue_id", sa.Text(), nullable=False),
        sa.Column("media_id", sa.Text(), nullable=False),
        sa.Column("bucket", sa.Text(), nullable=False),
        _created_at("added_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["queue_id"], ["queues.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("queue_id", "media_id", name="uq_queue_items_queue_media"),
        sa.CheckConstraint("bucket IN ('current', 'history')", name="ck_queue_items_bucket"),
    )
    op.create_index("idx_queue_items_media", "queue_items", ["media_id"])

    # ==========================================================================
    # media cache tables
    # ==========================================================================
    for table_name, columns in MEDIA_TABLES.items():
        op.create_table(
            table_name,
            sa.Column("id", sa.Text(), nullable=False),
            sa.Column("title", sa.Text(), nullable=True),
            sa.Column("source_url", sa.Text(), nullable=True),
            sa.Column("num_queues", sa.Integer(), server_default=sa.text("0"), nullable=False),
            _created_at("cached_at"),
            *columns(),
            sa.PrimaryKeyConstraint("id"),
        )


def downgrade() -> None:
    for table_name in reversed(list(MEDIA_TABLES)):
        op.drop_table(table_name)

    op.drop_index("idx_queue_items_media", table_name="queue_items")
    op.drop_table("queue_items")
    op.drop_index("idx_queue_users_username", table_name="queue_users")
    op.drop_table("queue_users")
    op.drop_index("idx_queues_media_type_group", table_name="queues")
    op.drop_table("queues")

    op.drop_index("idx_invitations_group_status", table_name="invitations")
    op.drop_index("idx_invitations_invited_user_status", table_name="invitations")
    op.drop_table("invitations")
    op.drop_index("idx_group_members_username", table_name="group_members")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("users")
