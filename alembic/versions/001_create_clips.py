"""Create clips table

Revision ID: 001_create_clips
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_create_clips'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'clips',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('filename', sa.String(255), nullable=False),
        sa.Column('storage_key', sa.Text(), nullable=False, unique=True),
        sa.Column('content_type', sa.String(100), nullable=False),
        sa.Column('size_bytes', sa.Integer(), nullable=False),
        sa.Column('normalized_storage_key', sa.Text(), nullable=True),
        sa.Column('duration_sec', sa.Float(), nullable=True),
        sa.Column('sample_rate', sa.Integer(), nullable=True),
        sa.Column('channels', sa.Integer(), nullable=True),
        sa.Column('silence_pct', sa.Float(), nullable=True),
        sa.Column('snr_db', sa.Float(), nullable=True),
        sa.Column('hash', sa.String(64), nullable=True),
        sa.Column('transcript', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('UPLOADED', 'PROCESSED', 'TRANSCRIBED', name='clipstatus'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_clips_status', 'clips', ['status'])
    op.create_index('ix_clips_created_at', 'clips', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_clips_created_at', table_name='clips')
    op.drop_index('ix_clips_status', table_name='clips')
    op.drop_table('clips')
    sa.Enum(name='clipstatus').drop(op.get_bind(), checkfirst=True)
