"""add answer_record for server-scored answers

Revision ID: 7d4e0b6a91f3
Revises: 3c9a1e7b52d0
Create Date: 2026-10-15 14:10:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7d4e0b6a91f3'
down_revision = '3c9a1e7b52d0'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # Databases built with `db-reset` already have the table.
    if 'answer_record' in set(insp.get_table_names()):
        return

    op.create_table(
        'answer_record',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_code', sa.String(length=8), nullable=False),
        sa.Column('participant_id', sa.String(length=64), nullable=False),
        sa.Column('question_index', sa.Integer(), nullable=False),
        sa.Column('answer', sa.JSON(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('submitted_at', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_code', 'participant_id', 'question_index', name='uq_answer_once'),
    )
    op.create_index('ix_answer_record_game_code', 'answer_record', ['game_code'])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'answer_record' not in set(insp.get_table_names()):
        return
    op.drop_index('ix_answer_record_game_code', table_name='answer_record')
    op.drop_table('answer_record')
