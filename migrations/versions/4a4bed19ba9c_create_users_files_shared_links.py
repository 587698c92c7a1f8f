"""Create users, files and shared_links

Revision ID: 4a4bed19ba9c
Revises:
Create Date: 2025-09-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4a4bed19ba9c'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('public_key', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'files',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('encrypted_key', sa.LargeBinary(), nullable=False),
        sa.Column('encrypted_payload', sa.LargeBinary(), nullable=False),
        sa.Column('iv', sa.LargeBinary(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_files_user_id', 'files', ['user_id'], unique=False)

    op.create_table(
        'shared_links',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('file_id', sa.Uuid(), sa.ForeignKey('files.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'recipient_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('expiration_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_shared_links_file_id', 'shared_links', ['file_id'], unique=False)
    op.create_index(
        'ix_shared_links_recipient_user_id', 'shared_links', ['recipient_user_id'], unique=False
    )


def downgrade() -> None:
    op.drop_table('shared_links')
    op.drop_table('files')
    op.drop_table('users')
