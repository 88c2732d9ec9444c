"""add score_record leaderboard table

Revision ID: 4c7a91d2e0b5
Revises:
Create Date: 2026-10-12 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7a91d2e0b5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'score_record' in set(insp.get_table_names()):
        return
    op.create_table(
        'score_record',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('member', sa.String(length=64), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('achieved_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_score_record_member', 'score_record', ['member'], unique=True)
    op.create_index('ix_score_record_score', 'score_record', ['score'])


def downgrade():
    op.drop_index('ix_score_record_score', table_name='score_record')
    op.drop_index('ix_score_record_member', table_name='score_record')
    op.drop_table('score_record')
