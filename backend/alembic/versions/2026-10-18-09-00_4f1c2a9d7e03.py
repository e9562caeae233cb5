"""create projects, messages, fragments, usage and job tables

Revision ID: 4f1c2a9d7e03
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union
import sqlmodel
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1c2a9d7e03'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column('user_id', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_projects_id'), 'projects', ['id'], unique=False)
    op.create_index(op.f('ix_projects_user_id'), 'projects', ['user_id'], unique=False)

    op.create_table(
        'messages',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column('project_id', sa.Uuid(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('role', sa.Enum('USER', 'ASSISTANT', name='message_role'), nullable=False),
        sa.Column('type', sa.Enum('RESULT', 'ERROR', name='message_type'), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_messages_id'), 'messages', ['id'], unique=False)
    op.create_index(op.f('ix_messages_project_id'), 'messages', ['project_id'], unique=False)

    op.create_table(
        'fragments',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column('message_id', sa.Uuid(), nullable=False),
        sa.Column('sandbox_url', sa.Text(), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('files', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['message_id'], ['messages.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_fragments_id'), 'fragments', ['id'], unique=False)
    op.create_index(op.f('ix_fragments_message_id'), 'fragments', ['message_id'], unique=True)

    op.create_table(
        'usage',
        sa.Column('key', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('expire', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('key'),
    )

    op.create_table(
        'job_runs',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column('function_id', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('event_name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('status', sa.Enum('QUEUED', 'RUNNING', 'COMPLETED', 'FAILED', name='job_status'), nullable=False),
        sa.Column('attempt', sa.Integer(), nullable=False),
        sa.Column('max_attempts', sa.Integer(), nullable=False),
        sa.Column('concurrency_key', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column('output', sa.JSON(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_job_runs_id'), 'job_runs', ['id'], unique=False)
    op.create_index(op.f('ix_job_runs_function_id'), 'job_runs', ['function_id'], unique=False)
    op.create_index(op.f('ix_job_runs_status'), 'job_runs', ['status'], unique=False)
    op.create_index(op.f('ix_job_runs_concurrency_key'), 'job_runs', ['concurrency_key'], unique=False)

    op.create_table(
        'job_steps',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column('run_id', sa.Uuid(), nullable=False),
        sa.Column('step_id', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('output', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['run_id'], ['job_runs.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('run_id', 'step_id', name='uq_job_step_run_step'),
    )
    op.create_index(op.f('ix_job_steps_id'), 'job_steps', ['id'], unique=False)
    op.create_index(op.f('ix_job_steps_run_id'), 'job_steps', ['run_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('job_steps')
    op.drop_table('job_runs')
    op.drop_table('usage')
    op.drop_table('fragments')
    op.drop_table('messages')
    op.drop_table('projects')
    sa.Enum(name='job_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='message_type').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='message_role').drop(op.get_bind(), checkfirst=True)
