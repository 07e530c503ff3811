""" create parking reservation, fine and overstay alert tables

Revision ID: 3c9a1e7d5b21
Revises: 
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c9a1e7d5b21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


reservation_status = sa.Enum(
    'pending', 'confirmed', 'checked_in', 'completed', 'cancelled', 'expired',
    name='reservationstatus')
fine_reason = sa.Enum('no_show', 'overstay', name='finereason')
fine_status = sa.Enum('pending', 'resolved', 'waived', name='finestatus')
overstay_alert_status = sa.Enum('active', 'cleared', name='overstayalertstatus')
notification_type = sa.Enum(
    'expiry_warning_30', 'expiry_warning_15', 'no_show_fine', 'overstay_fine',
    'reservation_cancelled',
    name='notificationtype')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_phone_number', 'users', ['phone_number'])

    op.create_table(
        'parking_lots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('zone', sa.String(), nullable=True),
        sa.Column('hourly_rate', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_parking_lots_id', 'parking_lots', ['id'])

    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('lot_id', sa.Integer(), nullable=False),
        sa.Column('vehicle_number', sa.String(), nullable=False),
        sa.Column('reservation_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', reservation_status, nullable=False,
                  server_default='pending'),
        sa.Column('notification_30_sent', sa.Boolean(),
                  nullable=False, server_default=sa.false()),
        sa.Column('notification_15_sent', sa.Boolean(),
                  nullable=False, server_default=sa.false()),
        sa.Column('fine_applied', sa.Boolean(),
                  nullable=False, server_default=sa.false()),
        sa.Column('checked_in_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['lot_id'], ['parking_lots.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_reservations_id', 'reservations', ['id'])
    op.create_index('ix_reservations_user_id', 'reservations', ['user_id'])
    op.create_index('ix_reservations_lot_id', 'reservations', ['lot_id'])
    op.create_index('ix_reservations_date_status', 'reservations',
                    ['reservation_date', 'status'])
    op.create_index('ix_reservations_lot_vehicle', 'reservations',
                    ['lot_id', 'vehicle_number'])

    op.create_table(
        'fines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('reservation_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('reason', fine_reason, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', fine_status, nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('applied_to_transaction_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['reservation_id'], ['reservations.id'],
                                ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_fines_id', 'fines', ['id'])
    op.create_index('ix_fines_user_id', 'fines', ['user_id'])
    op.create_index('ix_fines_reservation_id', 'fines', ['reservation_id'])
    # At most one pending fine per (reservation, reason)
    op.create_index(
        'uq_fines_pending_reservation_reason', 'fines',
        ['reservation_id', 'reason'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        'overstay_alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lot_id', sa.Integer(), nullable=False),
        sa.Column('vehicle_number', sa.String(), nullable=False),
        sa.Column('reservation_id', sa.Integer(), nullable=True),
        sa.Column('fine_id', sa.Integer(), nullable=True),
        sa.Column('entry_time', sa.DateTime(), nullable=True),
        sa.Column('expected_exit_time', sa.DateTime(), nullable=False),
        sa.Column('overstay_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', overstay_alert_status, nullable=False,
                  server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['lot_id'], ['parking_lots.id']),
        sa.ForeignKeyConstraint(['reservation_id'], ['reservations.id'],
                                ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['fine_id'], ['fines.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_overstay_alerts_id', 'overstay_alerts', ['id'])
    # At most one active alert per (lot, vehicle)
    op.create_index(
        'uq_overstay_alerts_active_lot_vehicle', 'overstay_alerts',
        ['lot_id', 'vehicle_number'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('reservation_id', sa.Integer(), nullable=True),
        sa.Column('notification_type', notification_type, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reservation_id'], ['reservations.id'],
                                ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_reservation_id', 'notifications',
                    ['reservation_id'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('overstay_alerts')
    op.drop_table('fines')
    op.drop_table('reservations')
    op.drop_table('parking_lots')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (notification_type, overstay_alert_status, fine_status,
                      fine_reason, reservation_status):
        enum_type.drop(bind, checkfirst=True)
