"""Create ledger schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create ledger tables."""
    # Create users table
    op.create_table(
        'users',
        *_timestamps(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('username', sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('ix_users_username', 'users', ['username'])

    # Create categories table
    op.create_table(
        'categories',
        *_timestamps(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(20), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    # Create bills table
    op.create_table(
        'bills',
        *_timestamps(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('total_amount', sa.BigInteger(), nullable=False),
        sa.Column('split_type', sa.String(10), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(9), nullable=False),
        sa.Column('currency', sa.String(10), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('created_by_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_bills_due_date', 'bills', ['due_date'])
    op.create_index('ix_bills_status', 'bills', ['status'])
    op.create_index('ix_bills_category_id', 'bills', ['category_id'])
    op.create_index('ix_bills_created_by_id', 'bills', ['created_by_id'])
    op.create_index('idx_bill_creator_status', 'bills', ['created_by_id', 'status'])

    # Create bill_participants table
    op.create_table(
        'bill_participants',
        *_timestamps(),
        sa.Column('bill_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount_owed', sa.BigInteger(), nullable=False),
        sa.Column('is_paid', sa.Boolean(), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['bill_id'], ['bills.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bill_id', 'user_id', name='uq_bill_participant'),
    )
    op.create_index('ix_bill_participants_bill_id', 'bill_participants', ['bill_id'])
    op.create_index('ix_bill_participants_user_id', 'bill_participants', ['user_id'])

    # Create budgets table
    op.create_table(
        'budgets',
        *_timestamps(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('total_amount', sa.BigInteger(), nullable=False),
        sa.Column('spent_amount', sa.BigInteger(), nullable=False),
        sa.Column('period', sa.String(7), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_budgets_category_id', 'budgets', ['category_id'])
    op.create_index('ix_budgets_created_by_id', 'budgets', ['created_by_id'])

    # Create savings_goals table
    op.create_table(
        'savings_goals',
        *_timestamps(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('target_amount', sa.BigInteger(), nullable=False),
        sa.Column('current_amount', sa.BigInteger(), nullable=False),
        sa.Column('target_date', sa.Date(), nullable=True),
        sa.Column('priority', sa.String(6), nullable=False),
        sa.Column('monthly_target', sa.BigInteger(), nullable=True),
        sa.Column('status', sa.String(9), nullable=False),
        sa.Column('currency', sa.String(10), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_savings_goals_status', 'savings_goals', ['status'])
    op.create_index('ix_savings_goals_user_id', 'savings_goals', ['user_id'])

    # Create expenses table
    op.create_table(
        'expenses',
        *_timestamps(),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('payment_method', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('currency', sa.String(10), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_expenses_user_id', 'expenses', ['user_id'])
    op.create_index('ix_expenses_category_id', 'expenses', ['category_id'])
    op.create_index('idx_expense_user_date', 'expenses', ['user_id', 'date'])

    # Create expense_budgets table
    op.create_table(
        'expense_budgets',
        *_timestamps(),
        sa.Column('expense_id', sa.Integer(), nullable=False),
        sa.Column('budget_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['expense_id'], ['expenses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['budget_id'], ['budgets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('expense_id', 'budget_id', name='uq_expense_budget'),
    )
    op.create_index('ix_expense_budgets_expense_id', 'expense_budgets', ['expense_id'])
    op.create_index('ix_expense_budgets_budget_id', 'expense_budgets', ['budget_id'])

    # Create expense_savings_goals table
    op.create_table(
        'expense_savings_goals',
        *_timestamps(),
        sa.Column('expense_id', sa.Integer(), nullable=False),
        sa.Column('savings_goal_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['expense_id'], ['expenses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['savings_goal_id'], ['savings_goals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('expense_id', 'savings_goal_id', name='uq_expense_savings_goal'),
    )
    op.create_index('ix_expense_savings_goals_expense_id', 'expense_savings_goals', ['expense_id'])
    op.create_index(
        'ix_expense_savings_goals_savings_goal_id', 'expense_savings_goals', ['savings_goal_id']
    )


def downgrade() -> None:
    """Drop ledger tables."""
    op.drop_table('expense_savings_goals')
    op.drop_table('expense_budgets')
    op.drop_table('expenses')
    op.drop_table('savings_goals')
    op.drop_table('budgets')
    op.drop_table('bill_participants')
    op.drop_table('bills')
    op.drop_table('categories')
    op.drop_table('users')
