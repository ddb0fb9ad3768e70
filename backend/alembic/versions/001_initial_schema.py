"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Tracks table
    op.create_table(
        'tracks',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('owner_id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255)),
        sa.Column('artist', sa.String(255)),
        sa.Column('thumbnail_name', sa.String(1000)),
        sa.Column('original_name', sa.String(255)),
        sa.Column('file_name', sa.String(1000)),
        sa.Column('declared_size', sa.BigInteger()),
        sa.Column('file_size', sa.BigInteger()),
        sa.Column('duration_months', sa.Integer()),
        sa.Column('duration_days', sa.Integer()),
        sa.Column('duration_microseconds', sa.BigInteger()),
        sa.Column('upload_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('error_message', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tracks_owner_id', 'tracks', ['owner_id'])
    op.create_index('ix_tracks_upload_status', 'tracks', ['upload_status'])

    # Upload sessions table
    op.create_table(
        'upload_sessions',
        sa.Column('track_id', sa.String(36), nullable=False),
        sa.Column('total_chunks', sa.Integer(), nullable=False),
        sa.Column('received_chunks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('watermark', sa.Integer(), nullable=False, server_default='-1'),
        sa.Column('chunk_prefix', sa.String(1000), nullable=False),
        sa.Column('state', sa.String(20), nullable=False, server_default='uploading'),
        sa.Column('finalize_token', sa.String(36)),
        sa.Column('finalize_claimed_at', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.ForeignKeyConstraint(['track_id'], ['tracks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('track_id')
    )
    op.create_index('ix_upload_sessions_state', 'upload_sessions', ['state'])

    # Received chunks table
    op.create_table(
        'upload_chunks',
        sa.Column('track_id', sa.String(36), nullable=False),
        sa.Column('chunk_index', sa.Integer(), nullable=False),
        sa.Column('byte_length', sa.BigInteger(), nullable=False),
        sa.Column('storage_key', sa.String(1000), nullable=False),
        sa.Column('received_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['track_id'], ['upload_sessions.track_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('track_id', 'chunk_index')
    )

    # Playlists table
    op.create_table(
        'playlists',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('owner_id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('thumbnail_path', sa.String(1000)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_playlists_owner_id', 'playlists', ['owner_id'])

    # Playlist tracks table
    op.create_table(
        'playlist_tracks',
        sa.Column('playlist_id', sa.String(36), nullable=False),
        sa.Column('track_id', sa.String(36), nullable=False),
        sa.Column('track_order', sa.Integer(), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['playlist_id'], ['playlists.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['track_id'], ['tracks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('playlist_id', 'track_id'),
        sa.UniqueConstraint('playlist_id', 'track_order', name='uq_playlist_track_order')
    )

    # Playback history table
    op.create_table(
        'playback_history',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('track_id', sa.String(36), nullable=False),
        sa.Column('duration_played_months', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_played_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_played_microseconds', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('played_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['track_id'], ['tracks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'track_id', name='uq_playback_history_user_track')
    )
    op.create_index('ix_playback_history_user_id', 'playback_history', ['user_id'])

    # Favorites junction table
    op.create_table(
        'user_favorites',
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('track_id', sa.String(36), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['track_id'], ['tracks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'track_id')
    )


def downgrade() -> None:
    op.drop_table('user_favorites')
    op.drop_table('playback_history')
    op.drop_table('playlist_tracks')
    op.drop_table('playlists')
    op.drop_table('upload_chunks')
    op.drop_table('upload_sessions')
    op.drop_table('tracks')
