"""create users and cars

Revision ID: 3f1c2a7b9d10
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c2a7b9d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=30), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=10), nullable=False),
        sa.Column('first_name', sa.String(length=50), nullable=True),
        sa.Column('last_name', sa.String(length=50), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'cars',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('make', sa.String(length=50), nullable=False),
        sa.Column('model', sa.String(length=50), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('mileage', sa.Integer(), nullable=False),
        sa.Column('fuel_type', sa.String(length=20), nullable=False),
        sa.Column('transmission', sa.String(length=20), nullable=False),
        sa.Column('body_type', sa.String(length=20), nullable=False),
        sa.Column('color', sa.String(length=30), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('location_city', sa.String(length=50), nullable=False),
        sa.Column('location_state', sa.String(length=50), nullable=False),
        sa.Column('location_country', sa.String(length=50), nullable=False),
        sa.Column('seller_name', sa.String(length=100), nullable=False),
        sa.Column('seller_phone', sa.String(length=20), nullable=False),
        sa.Column('seller_email', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cars_make', 'cars', ['make'])
    op.create_index('ix_cars_year', 'cars', ['year'])
    op.create_index('ix_cars_price', 'cars', ['price'])
    op.create_index('ix_cars_fuel_type', 'cars', ['fuel_type'])
    op.create_index('ix_cars_body_type', 'cars', ['body_type'])
    op.create_index('ix_cars_created_at', 'cars', ['created_at'])
    op.create_index('ix_cars_make_model', 'cars', ['make', 'model'])
    op.create_index('ix_cars_status_is_active', 'cars', ['status', 'is_active'])
    op.create_index('ix_cars_location_city', 'cars', ['location_city'])
    op.create_index('ix_cars_seller_email', 'cars', ['seller_email'])


def downgrade() -> None:
    op.drop_table('cars')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
