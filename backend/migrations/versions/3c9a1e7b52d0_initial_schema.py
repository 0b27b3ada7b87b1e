"""initial schema: users, tokens, game instances, guests, progress

Revision ID: 3c9a1e7b52d0
Revises:
Create Date: 2026-10-12 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9a1e7b52d0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=True),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('sound_feedback', sa.Boolean(), nullable=False),
        sa.Column('haptic_feedback', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'invite_token',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.Float(), nullable=False),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index('ix_invite_token_email', 'invite_token', ['email'])

    op.create_table(
        'password_reset_token',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.Float(), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index('ix_password_reset_token_email', 'password_reset_token', ['email'])

    op.create_table(
        'game_instance',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=8), nullable=False),
        sa.Column('game_kind', sa.String(length=64), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.Column('started_at', sa.Float(), nullable=True),
        sa.Column('custom_config', sa.JSON(), nullable=True),
        sa.Column('questions', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_instance_code', 'game_instance', ['code'], unique=True)
    op.create_index('ix_game_instance_game_kind', 'game_instance', ['game_kind'])
    op.create_index('ix_game_instance_created_by', 'game_instance', ['created_by'])

    op.create_table(
        'game_participant',
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('joined_at', sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(['game_id'], ['game_instance.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('game_id', 'user_id'),
    )

    op.create_table(
        'guest_participant',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('guest_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('joined_at', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game_instance.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('guest_id'),
        sa.UniqueConstraint('game_id', 'name', name='uq_guest_game_name'),
    )
    op.create_index('ix_guest_participant_game_id', 'guest_participant', ['game_id'])

    op.create_table(
        'progress_record',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_code', sa.String(length=8), nullable=False),
        sa.Column('participant_id', sa.String(length=64), nullable=False),
        sa.Column('participant_name', sa.String(length=128), nullable=False),
        sa.Column('participant_type', sa.String(length=16), nullable=False),
        sa.Column('questions_answered', sa.Integer(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('last_updated', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_code', 'participant_id', name='uq_progress_game_participant'),
    )
    op.create_index('ix_progress_record_game_code', 'progress_record', ['game_code'])


def downgrade():
    op.drop_index('ix_progress_record_game_code', table_name='progress_record')
    op.drop_table('progress_record')
    op.drop_index('ix_guest_participant_game_id', table_name='guest_participant')
    op.drop_table('guest_participant')
    op.drop_table('game_participant')
    op.drop_index('ix_game_instance_created_by', table_name='game_instance')
    op.drop_index('ix_game_instance_game_kind', table_name='game_instance')
    op.drop_index('ix_game_instance_code', table_name='game_instance')
    op.drop_table('game_instance')
    op.drop_index('ix_password_reset_token_email', table_name='password_reset_token')
    op.drop_table('password_reset_token')
    op.drop_index('ix_invite_token_email', table_name='invite_token')
    op.drop_table('invite_token')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_table('user')
