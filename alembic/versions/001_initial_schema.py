"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

_ACTIVE = sa.text("undeployed_at IS NULL")


def upgrade() -> None:
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if "pacticipants" in existing_tables:
        return

    op.create_table(
        "pacticipants",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("main_branch", sa.String(255), nullable=False, server_default="main"),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_pacticipants_name", "pacticipants", ["name"])

    op.create_table(
        "versions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("participant_id", sa.Integer, sa.ForeignKey("pacticipants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("number", sa.String(255), nullable=False),
        sa.Column("branch", sa.String(255), nullable=True),
        sa.Column("build_url", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("participant_id", "number", name="versions_participant_number_key"),
    )
    op.create_index("ix_versions_participant_id", "versions", ["participant_id"])

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("version_id", sa.Integer, sa.ForeignKey("versions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("version_id", "name", name="tags_version_name_key"),
    )
    op.create_index("ix_tags_name", "tags", ["name"])

    op.create_table(
        "pacts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("consumer_version_id", sa.Integer, sa.ForeignKey("versions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("provider_id", sa.Integer, sa.ForeignKey("pacticipants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("content_sha", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("consumer_version_id", "provider_id", name="pacts_consumer_version_provider_key"),
    )
    op.create_index("ix_pacts_provider_id", "pacts", ["provider_id"])
    op.create_index("ix_pacts_content_sha", "pacts", ["content_sha"])

    op.create_table(
        "verifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("pact_id", sa.Integer, sa.ForeignKey("pacts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("provider_version_id", sa.Integer, sa.ForeignKey("versions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("success", sa.Boolean, nullable=False),
        sa.Column("build_url", sa.String(1000), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_verifications_pact_id", "verifications", ["pact_id"])
    op.create_index("ix_verifications_provider_version_id", "verifications", ["provider_version_id"])

    op.create_table(
        "environments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("production", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_environments_name", "environments", ["name"])

    op.create_table(
        "deployments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("version_id", sa.Integer, sa.ForeignKey("versions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("environment_id", sa.Integer, sa.ForeignKey("environments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("deployed_at", sa.DateTime(timezone=True)),
        sa.Column("undeployed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_deployments_version_id", "deployments", ["version_id"])
    op.create_index("ix_deployments_environment_id", "deployments", ["environment_id"])
    op.create_index(
        "deployments_active_version_env_idx",
        "deployments",
        ["version_id", "environment_id"],
        unique=True,
        sqlite_where=_ACTIVE,
        postgresql_where=_ACTIVE,
    )


def downgrade() -> None:
    op.drop_table("deployments")
    op.drop_table("environments")
    op.drop_table("verifications")
    op.drop_table("pacts")
    op.drop_table("tags")
    op.drop_table("versions")
    op.drop_table("pacticipants")
