"""Initial DressMaker schema: profiles, orders, payments, tracking, chat, disputes

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-02-10

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def timestamps(updated=True):
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)
        )
    return columns


def profile_owner_columns():
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
    ]


def upgrade():
    op.create_table('user_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        *timestamps(),
        sa.CheckConstraint("role IN ('customer', 'tailor', 'admin')", name='user_profiles_role_check'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index('ix_user_profiles_user_id', 'user_profiles', ['user_id'])

    op.create_table('customer_profiles',
        *profile_owner_columns(),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('country', sa.String(length=100), server_default='India', nullable=False),
        sa.Column('profile_image_url', sa.String(length=500), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('preferred_style', sa.String(length=100), nullable=True),
        sa.Column('budget_preference', sa.String(length=100), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_profile_id'], ['user_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_profile_id'),
        sa.UniqueConstraint('user_id')
    )

    op.create_table('tailor_profiles',
        *profile_owner_columns(),
        sa.Column('phone', sa.String(length=20), server_default='', nullable=False),
        sa.Column('business_name', sa.String(length=200), nullable=False),
        sa.Column('address', sa.String(length=255), server_default='', nullable=False),
        sa.Column('city', sa.String(length=100), server_default='', nullable=False),
        sa.Column('state', sa.String(length=100), server_default='', nullable=False),
        sa.Column('postal_code', sa.String(length=20), server_default='', nullable=False),
        sa.Column('country', sa.String(length=100), server_default='India', nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('service_radius_km', sa.Float(), server_default='10.0', nullable=False),
        sa.Column('profile_image_url', sa.String(length=500), nullable=True),
        sa.Column('business_image_url', sa.String(length=500), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('specializations', sa.JSON(), server_default='[]', nullable=False),
        sa.Column('experience_years', sa.Integer(), nullable=True),
        sa.Column('rating', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('total_orders', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_customers', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_verified', sa.Boolean(), server_default='false', nullable=False),
        *timestamps(),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='tailor_rating_range_check'),
        sa.CheckConstraint('service_radius_km >= 0', name='tailor_service_radius_check'),
        sa.ForeignKeyConstraint(['user_profile_id'], ['user_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_profile_id'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index('tailor_profiles_rating_idx', 'tailor_profiles', ['rating'])

    op.create_table('admin_profiles',
        *profile_owner_columns(),
        sa.Column('permissions', sa.JSON(), server_default='[]', nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_profile_id'], ['user_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_profile_id'),
        sa.UniqueConstraint('user_id')
    )

    op.create_table('design_models',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('garment_type', sa.String(length=100), nullable=False),
        sa.Column('model_url', sa.String(length=500), nullable=False),
        sa.Column('thumbnail_url', sa.String(length=500), nullable=True),
        sa.Column('color_options', sa.JSON(), server_default='[]', nullable=False),
        sa.Column('size_range', sa.String(length=50), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_approved', sa.Boolean(), server_default='false', nullable=False),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('measurements',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('height_cm', sa.Float(), nullable=True),
        sa.Column('bust_cm', sa.Float(), nullable=True),
        sa.Column('waist_cm', sa.Float(), nullable=True),
        sa.Column('hip_cm', sa.Float(), nullable=True),
        sa.Column('shoulder_cm', sa.Float(), nullable=True),
        sa.Column('arm_length_cm', sa.Float(), nullable=True),
        sa.Column('inseam_cm', sa.Float(), nullable=True),
        sa.Column('chest_cm', sa.Float(), nullable=True),
        sa.Column('neck_cm', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_primary', sa.Boolean(), server_default='false', nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customer_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_measurements_customer_id', 'measurements', ['customer_id'])

    op.create_table('orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tailor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('advance_paid', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('final_paid', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('delivery_address', sa.Text(), nullable=True),
        sa.Column('delivery_date_estimate', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_delivery_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('design_references', sa.JSON(), server_default='[]', nullable=False),
        sa.Column('measurement_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('rejected_reason', sa.Text(), nullable=True),
        *timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'in_progress', 'ready', 'shipped', 'delivered', 'cancelled')",
            name='order_status_check'
        ),
        sa.CheckConstraint('total_amount >= 0', name='total_amount_non_negative_check'),
        sa.ForeignKeyConstraint(['customer_id'], ['customer_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tailor_id'], ['tailor_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['measurement_id'], ['measurements.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number')
    )
    op.create_index('orders_customer_created_idx', 'orders', ['customer_id', 'created_at'])
    op.create_index('orders_tailor_created_idx', 'orders', ['tailor_id', 'created_at'])

    op.create_table('tailor_reviews',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tailor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('is_published', sa.Boolean(), server_default='true', nullable=False),
        *timestamps(),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='review_rating_range_check'),
        sa.ForeignKeyConstraint(['tailor_id'], ['tailor_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['customer_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('order_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('garment_type', sa.String(length=100), nullable=False),
        sa.Column('fabric_type', sa.String(length=100), nullable=True),
        sa.Column('color', sa.String(length=50), nullable=True),
        sa.Column('quantity', sa.Integer(), server_default='1', nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('design_model_id', postgresql.UUID(as_uuid=True), nullable=True),
        *timestamps(updated=False),
        sa.CheckConstraint('quantity > 0', name='quantity_positive_check'),
        sa.CheckConstraint('unit_price >= 0', name='unit_price_non_negative_check'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['design_model_id'], ['design_models.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table('order_status_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('changed_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamps(updated=False),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'in_progress', 'ready', 'shipped', 'delivered', 'cancelled')",
            name='history_status_check'
        ),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_order_status_history_order_id', 'order_status_history', ['order_id'])

    op.create_table('payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tailor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=10), server_default='INR', nullable=False),
        sa.Column('payment_method', sa.String(length=50), server_default='razorpay', nullable=False),
        sa.Column('payment_type', sa.String(length=20), nullable=False),
        sa.Column('razorpay_order_id', sa.String(length=100), nullable=True),
        sa.Column('razorpay_payment_id', sa.String(length=100), nullable=True),
        sa.Column('razorpay_signature', sa.String(length=200), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('captured_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.CheckConstraint("status IN ('pending', 'captured', 'failed', 'refunded')", name='payment_status_check'),
        sa.CheckConstraint("payment_type IN ('advance', 'final', 'full')", name='payment_type_check'),
        sa.CheckConstraint('amount > 0', name='payment_amount_positive_check'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['customer_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tailor_id'], ['tailor_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payments_order_id', 'payments', ['order_id'])
    op.create_index('ix_payments_razorpay_order_id', 'payments', ['razorpay_order_id'])

    op.create_table('delivery_tracking',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('updated_by', postgresql.UUID(as_uuid=True), nullable=False),
        *timestamps(updated=False),
        sa.CheckConstraint(
            "status IN ('pending', 'in_transit', 'out_for_delivery', 'delivered')",
            name='tracking_status_check'
        ),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('delivery_tracking_order_created_idx', 'delivery_tracking', ['order_id', 'created_at'])

    op.create_table('conversations',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tailor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('last_message_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *timestamps(updated=False),
        sa.ForeignKeyConstraint(['customer_id'], ['customer_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tailor_id'], ['tailor_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('customer_id', 'tailor_id', name='unique_conversation_per_pair')
    )

    op.create_table('messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('conversation_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sender_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sender_type', sa.String(length=20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('attachment_url', sa.String(length=500), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default='false', nullable=False),
        *timestamps(updated=False),
        sa.CheckConstraint("sender_type IN ('customer', 'tailor')", name='message_sender_type_check'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('messages_conversation_created_idx', 'messages', ['conversation_id', 'created_at'])

    op.create_table('disputes',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tailor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('subject', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='open', nullable=False),
        sa.Column('priority', sa.String(length=20), server_default='medium', nullable=False),
        sa.Column('raised_by', sa.String(length=20), nullable=False),
        sa.Column('resolution_notes', sa.Text(), nullable=True),
        sa.Column('resolved_by', postgresql.UUID(as_uuid=True), nullable=True),
        *timestamps(),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('open', 'in_progress', 'resolved', 'closed')", name='dispute_status_check'),
        sa.CheckConstraint("raised_by IN ('customer', 'tailor')", name='dispute_raised_by_check'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['customer_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tailor_id'], ['tailor_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_disputes_order_id', 'disputes', ['order_id'])

    op.create_table('dispute_messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('dispute_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sender_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sender_type', sa.String(length=20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        *timestamps(updated=False),
        sa.CheckConstraint("sender_type IN ('customer', 'tailor', 'admin')", name='dispute_message_sender_type_check'),
        sa.ForeignKeyConstraint(['dispute_id'], ['disputes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_dispute_messages_dispute_id', 'dispute_messages', ['dispute_id'])


def downgrade():
    op.drop_table('dispute_messages')
    op.drop_table('disputes')
    op.drop_table('messages')
    op.drop_table('conversations')
    op.drop_table('delivery_tracking')
    op.drop_table('payments')
    op.drop_table('order_status_history')
    op.drop_table('order_items')
    op.drop_table('tailor_reviews')
    op.drop_table('orders')
    op.drop_table('measurements')
    op.drop_table('design_models')
    op.drop_table('admin_profiles')
    op.drop_table('tailor_profiles')
    op.drop_table('customer_profiles')
    op.drop_table('user_profiles')
