"""create_cues_and_team_members

Revision ID: 7c1e4a9b2d30
Revises:
Create Date: 2026-10-19 09:12:41.508113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '7c1e4a9b2d30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('cues',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('run_id', sa.String(length=256), nullable=False),
    sa.Column('seq', sa.BigInteger(), sa.Identity(always=False), nullable=False),
    sa.Column('scheduled_time', sa.Time(), nullable=False),
    sa.Column('duration_minutes', sa.Integer(), nullable=False),
    sa.Column('title', sa.String(length=256), nullable=False),
    sa.Column('cue_type', sa.String(length=16), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('technician_id', sa.String(length=64), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('status', sa.String(length=16), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint('duration_minutes >= 1', name='ck_cues_duration_positive'),
    sa.CheckConstraint('length(trim(title)) > 0', name='ck_cues_title_not_empty'),
    sa.CheckConstraint("status IN ('upcoming', 'live', 'delayed', 'completed', 'skipped')", name='ck_cues_status'),
    sa.CheckConstraint("cue_type IN ('general', 'audio', 'visual', 'lighting', 'stage')", name='ck_cues_cue_type'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('seq'),
    schema='runsheet'
    )
    op.create_index(op.f('ix_runsheet_cues_run_id'), 'cues', ['run_id'], unique=False, schema='runsheet')
    op.create_table('team_members',
    sa.Column('id', sa.String(length=64), nullable=False),
    sa.Column('workspace_id', sa.String(length=128), nullable=False),
    sa.Column('name', sa.String(length=256), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    schema='runsheet'
    )
    op.create_index(op.f('ix_runsheet_team_members_workspace_id'), 'team_members', ['workspace_id'], unique=False, schema='runsheet')


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_runsheet_team_members_workspace_id'), table_name='team_members', schema='runsheet')
    op.drop_table('team_members', schema='runsheet')
    op.drop_index(op.f('ix_runsheet_cues_run_id'), table_name='cues', schema='runsheet')
    op.drop_table('cues', schema='runsheet')
