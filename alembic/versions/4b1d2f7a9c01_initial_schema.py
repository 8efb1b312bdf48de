"""Initial schema: users, notes, tags, revisions, share and refresh tokens

Revision ID: 4b1d2f7a9c01
Revises:
Create Date: 2025-09-20 10:12:31.402117

"""
import uuid
from datetime import datetime, timezone
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4b1d2f7a9c01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid() -> postgresql.UUID:
    return postgresql.UUID(as_uuid=True)


def _base_columns():
    return [
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    authorities = op.create_table(
        'authorities',
        *_base_columns(),
        sa.Column('name', sa.String(length=50), nullable=False, unique=True),
    )

    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('username', sa.String(length=50), nullable=False, unique=True),
        sa.Column('email', sa.String(length=254), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.CheckConstraint('length(username) <= 50', name='ck_users_username_len'),
    )

    op.create_table(
        'user_authorities',
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('authority_id', _uuid(), sa.ForeignKey('authorities.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'refresh_tokens',
        *_base_columns(),
        sa.Column('token', sa.String(length=64), nullable=False, unique=True),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('remember_me', sa.Boolean(), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False),
    )
    op.create_index('idx_refresh_tokens_user_revoked', 'refresh_tokens', ['user_id', 'revoked'])

    op.create_table(
        'tags',
        *_base_columns(),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.UniqueConstraint('name', name='uq_tags_name'),
        sa.CheckConstraint('length(name) <= 50', name='ck_tags_name_len'),
    )

    op.create_table(
        'notes',
        *_base_columns(),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('pinned', sa.Boolean(), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=True),
        sa.Column('owner', sa.String(length=50), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.String(length=50), nullable=True),
        sa.Column('last_modified_by', sa.String(length=50), nullable=True),
        sa.Column('deleted', sa.Boolean(), nullable=False),
        sa.Column('deleted_by', sa.String(length=50), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('length(title) <= 255', name='ck_notes_title_len'),
    )
    op.create_index('ix_notes_deleted', 'notes', ['deleted'])
    op.create_index('idx_notes_owner_deleted', 'notes', ['owner', 'deleted'])
    op.create_index('idx_notes_created_at', 'notes', ['created_at'])

    op.create_table(
        'note_tags',
        sa.Column('note_id', _uuid(), sa.ForeignKey('notes.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', _uuid(), sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_index('ix_note_tags_tag_id', 'note_tags', ['tag_id'])

    op.create_table(
        'note_revisions',
        *_base_columns(),
        sa.Column('note_id', _uuid(), nullable=False),
        sa.Column('revision', sa.Integer(), nullable=False),
        sa.Column('revision_type', sa.String(length=3), nullable=False),
        sa.Column('revision_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('auditor', sa.String(length=50), nullable=True),
        sa.Column('snapshot', sa.JSON(), nullable=False),
        sa.UniqueConstraint('note_id', 'revision', name='uq_note_revisions_note_revision'),
    )
    op.create_index('idx_note_revisions_note_id', 'note_revisions', ['note_id'])

    op.create_table(
        'note_share_tokens',
        *_base_columns(),
        sa.Column('note_id', _uuid(), sa.ForeignKey('notes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permission', sa.String(length=20), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('one_time', sa.Boolean(), nullable=False),
        sa.Column('use_count', sa.Integer(), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False),
    )
    op.create_index('idx_share_tokens_note_id', 'note_share_tokens', ['note_id'])
    op.create_index('idx_share_tokens_created_at', 'note_share_tokens', ['created_at'])

    # built-in roles
    now = datetime.now(timezone.utc)
    op.bulk_insert(
        authorities,
        [
            {'id': uuid.uuid4(), 'name': 'ROLE_ADMIN', 'created_at': now, 'updated_at': now},
            {'id': uuid.uuid4(), 'name': 'ROLE_USER', 'created_at': now, 'updated_at': now},
        ],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('note_share_tokens')
    op.drop_table('note_revisions')
    op.drop_table('note_tags')
    op.drop_table('notes')
    op.drop_table('tags')
    op.drop_table('refresh_tokens')
    op.drop_table('user_authorities')
    op.drop_table('users')
    op.drop_table('authorities')
