"""add friend_id to buddy_session

Revision ID: 9a4e6f2c7d18
Revises: 5c2d9e7a1b40
Create Date: 2026-10-18 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '9a4e6f2c7d18'
down_revision = '5c2d9e7a1b40'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    cols = {c['name'] for c in insp.get_columns('buddy_session')}
    with op.batch_alter_table('buddy_session') as batch_op:
        if 'friend_id' not in cols:
            batch_op.add_column(sa.Column('friend_id', sa.String(length=64), nullable=True))


def downgrade():
    with op.batch_alter_table('buddy_session') as batch_op:
        batch_op.drop_column('friend_id')
