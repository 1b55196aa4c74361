"""add encrypted access token to plaid_items

Revision ID: 8f4b2d61ae93
Revises: 3c1e9a7d52b0
Create Date: 2026-10-05 16:40:51.902217

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8f4b2d61ae93'
down_revision: Union[str, Sequence[str], None] = '3c1e9a7d52b0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    with op.batch_alter_table('plaid_items', schema=None) as batch_op:
        batch_op.add_column(sa.Column('access_token_enc', sa.String(), nullable=True))


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table('plaid_items', schema=None) as batch_op:
        batch_op.drop_column('access_token_enc')
