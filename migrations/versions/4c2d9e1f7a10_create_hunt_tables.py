"""create participants, secret_codes, found_records and admins

Revision ID: 4c2d9e1f7a10
Revises:
Create Date: 2026-04-02 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c2d9e1f7a10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'admins',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
    )
    op.create_index('ix_admins_username', 'admins', ['username'], unique=True)

    op.create_table(
        'participants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_participants_username', 'participants', ['username'], unique=True)

    op.create_table(
        'secret_codes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_secret_codes_code', 'secret_codes', ['code'], unique=True)

    # No ON DELETE CASCADE: callers delete found records before their parents
    op.create_table(
        'found_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('participant_id', sa.Integer(), sa.ForeignKey('participants.id'), nullable=False),
        sa.Column('code_id', sa.Integer(), sa.ForeignKey('secret_codes.id'), nullable=False),
        sa.Column('found_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('participant_id', 'code_id', name='uq_found_participant_code'),
    )
    op.create_index('ix_found_records_participant_id', 'found_records', ['participant_id'])
    op.create_index('ix_found_records_code_id', 'found_records', ['code_id'])


def downgrade():
    op.drop_index('ix_found_records_code_id', table_name='found_records')
    op.drop_index('ix_found_records_participant_id', table_name='found_records')
    op.drop_table('found_records')
    op.drop_index('ix_secret_codes_code', table_name='secret_codes')
    op.drop_table('secret_codes')
    op.drop_index('ix_participants_username', table_name='participants')
    op.drop_table('participants')
    op.drop_index('ix_admins_username', table_name='admins')
    op.drop_table('admins')
