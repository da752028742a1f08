"""create buddy_session table

Revision ID: 5c2d9e7a1b40
Revises:
Create Date: 2026-02-14 10:20:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'buddy_session' in set(insp.get_table_names()):
        return

    op.create_table(
        'buddy_session',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('creator_id', sa.String(length=64), nullable=False),
        sa.Column('task', sa.String(length=255), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='waiting'),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('start_time', sa.BigInteger(), nullable=True),
        sa.Column('completed_at', sa.BigInteger(), nullable=True),
        sa.Column('creator_status', sa.String(length=16), nullable=False, server_default='focused'),
        sa.Column('friend_status', sa.String(length=16), nullable=False, server_default='waiting'),
        sa.Column('friend_task', sa.String(length=255), nullable=True),
        sa.Column('creator_violations', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('friend_violations', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_buddy_session_status', 'buddy_session', ['status'])


def downgrade():
    op.drop_index('ix_buddy_session_status', table_name='buddy_session')
    op.drop_table('buddy_session')
