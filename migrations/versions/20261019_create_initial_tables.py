"""Create podcast, episode, transcript, segment, clip, user and job tables

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
    ]


def upgrade():
    user_role = postgresql.ENUM("admin", name="user_role")
    transcription_status = postgresql.ENUM(
        "pending", "in_progress", "completed", "failed", name="transcription_status"
    )
    job_status = postgresql.ENUM("queued", "running", "completed", "failed", name="job_status")

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("hashed_password", sa.Text(), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="admin"),
        *_timestamps(),
    )

    op.create_table(
        "podcasts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("author", sa.Text(), nullable=True),
        sa.Column("cover_image_url", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "episodes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("podcast_id", sa.Uuid(), sa.ForeignKey("podcasts.id"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("audio_file_url", sa.Text(), nullable=False),
        sa.Column("publication_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("transcription_status", transcription_status, nullable=False, server_default="pending"),
        sa.Column("duration", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_episodes_podcast_id", "episodes", ["podcast_id"])

    op.create_table(
        "transcripts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("episode_id", sa.Uuid(), sa.ForeignKey("episodes.id"), nullable=False, unique=True),
        sa.Column("raw_transcript", postgresql.JSONB(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "transcript_segments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("transcript_id", sa.Uuid(), sa.ForeignKey("transcripts.id"), nullable=False),
        sa.Column("episode_id", sa.Uuid(), sa.ForeignKey("episodes.id"), nullable=False),
        sa.Column("start_time", sa.Float(), nullable=False),
        sa.Column("end_time", sa.Float(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "idx_transcript_segments_episode_start",
        "transcript_segments",
        ["episode_id", "start_time"],
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_transcript_segments_text_search "
        "ON transcript_segments USING gin (to_tsvector('english', text))"
    )

    op.create_table(
        "clips",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("episode_id", sa.Uuid(), sa.ForeignKey("episodes.id"), nullable=False),
        sa.Column("start_time", sa.Float(), nullable=False),
        sa.Column("end_time", sa.Float(), nullable=False),
        sa.Column("transcript_text", sa.Text(), nullable=True),
        sa.Column("search_query", sa.Text(), nullable=True),
        sa.Column("audio_clip_url", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_clips_episode_id", "clips", ["episode_id"])

    op.create_table(
        "transcription_jobs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("episode_id", sa.Uuid(), sa.ForeignKey("episodes.id"), nullable=False),
        sa.Column("audio_url", sa.Text(), nullable=False),
        sa.Column("status", job_status, nullable=False, server_default="queued"),
        sa.Column("external_id", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_transcription_jobs_episode_id", "transcription_jobs", ["episode_id"])


def downgrade():
    op.drop_table("transcription_jobs")
    op.drop_table("clips")
    op.execute("DROP INDEX IF EXISTS idx_transcript_segments_text_search")
    op.drop_table("transcript_segments")
    op.drop_table("transcripts")
    op.drop_table("episodes")
    op.drop_table("podcasts")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS job_status")
    op.execute("DROP TYPE IF EXISTS transcription_status")
    op.execute("DROP TYPE IF EXISTS user_role")
