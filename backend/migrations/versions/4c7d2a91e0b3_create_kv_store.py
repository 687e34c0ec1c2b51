"""create kv_store for clock config and state blobs

Revision ID: 4c7d2a91e0b3
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7d2a91e0b3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'kv_store' in set(insp.get_table_names()):
        return
    op.create_table(
        'kv_store',
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.LargeBinary(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'kv_store' in set(insp.get_table_names()):
        op.drop_table('kv_store')
