"""Integration tests for expense allocation to budgets and savings goals."""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from fintrack.models import (
    Budget,
    Expense,
    ExpenseBudgetLink,
    ExpenseSavingsGoalLink,
    SavingsGoal,
    SavingsGoalStatus,
)
from fintrack.schemas.expenses import (
    CreateExpensePayload,
    ExpenseRead,
    LinkItem,
    UnlinkExpensePayload,
    UpdateExpensePayload,
)
from fintrack.services.bucket_ledger import BucketLedger
from fintrack.services.db import make_session_factory
from fintrack.services.errors import ConcurrencyError, NotFoundError, ValidationError
from fintrack.services.expense_service import ExpenseService, build_selection
from fintrack.services.lookups import find_budget
from fintrack.services.notification_service import NotificationKind
from fintrack.services.split_policy import DistributionType
from fintrack.services.transaction import atomic


def expense_payload(amount="50.00", **overrides):
    data = {
        "description": "Weekly shop",
        "amount": Decimal(amount),
        "date": datetime(2026, 3, 14, 12, 0),
    }
    data.update(overrides)
    return CreateExpensePayload(**data)


def count(db_session, model):
    return db_session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def service(db_session, notifications, settings):
    return ExpenseService(db_session, notifications, settings=settings)


@pytest.fixture
def budgets(db_session, alice):
    created = [
        Budget(name="Food", total_amount=100000, created_by_id=alice.id),
        Budget(name="Household", total_amount=100000, created_by_id=alice.id),
    ]
    db_session.add_all(created)
    db_session.commit()
    return created


@pytest.fixture
def goal(db_session, alice):
    goal = SavingsGoal(
        name="Emergency fund",
        target_amount=50000,
        current_amount=20000,
        user_id=alice.id,
    )
    db_session.add(goal)
    db_session.commit()
    return goal


class TestCreateExpense:
    """Test allocation on create."""

    def test_single_budget_gets_full_amount(self, service, db_session, alice, budgets):
        food = budgets[0]

        expense = service.create_expense(expense_payload(budget_ids=[food.id]), alice.id)

        db_session.refresh(food)
        assert food.spent_amount == 5000
        assert [(link.budget_id, link.amount) for link in expense.budget_links] == [
            (food.id, 5000)
        ]

    def test_equal_split_gives_every_budget_full_amount(self, service, db_session, alice, budgets):
        service.create_expense(
            expense_payload(
                "40.00",
                budget_ids=[b.id for b in budgets],
                budget_distribution=DistributionType.EQUAL_SPLIT,
            ),
            alice.id,
        )

        for budget in budgets:
            db_session.refresh(budget)
            assert budget.spent_amount == 4000

    def test_default_distribution_is_equal_split(self, service, db_session, alice, budgets):
        service.create_expense(expense_payload(budget_ids=[b.id for b in budgets]), alice.id)

        assert [db_session.get(Budget, b.id).spent_amount for b in budgets] == [5000, 5000]

    def test_half_distribution(self, service, db_session, alice, budgets):
        service.create_expense(
            expense_payload(
                budget_ids=[b.id for b in budgets], budget_distribution=DistributionType.HALF
            ),
            alice.id,
        )

        assert [db_session.get(Budget, b.id).spent_amount for b in budgets] == [2500, 2500]

    def test_manual_distribution(self, service, db_session, alice, budgets):
        service.create_expense(
            expense_payload(
                "100.00",
                budget_distribution=DistributionType.MANUAL,
                budget_links=[
                    LinkItem(id=budgets[0].id, amount=Decimal("30.00")),
                    LinkItem(id=budgets[1].id, amount=Decimal("70.00")),
                ],
            ),
            alice.id,
        )

        assert [db_session.get(Budget, b.id).spent_amount for b in budgets] == [3000, 7000]

    def test_manual_mismatch_rejected_without_side_effects(
        self, service, db_session, alice, budgets
    ):
        """[30, 60] against 100 is rejected and nothing is written."""
        payload = expense_payload(
            "100.00",
            budget_distribution=DistributionType.MANUAL,
            budget_links=[
                LinkItem(id=budgets[0].id, amount=Decimal("30.00")),
                LinkItem(id=budgets[1].id, amount=Decimal("60.00")),
            ],
        )

        with pytest.raises(ValidationError):
            service.create_expense(payload, alice.id)

        assert count(db_session, Expense) == 0
        assert count(db_session, ExpenseBudgetLink) == 0
        assert [db_session.get(Budget, b.id).spent_amount for b in budgets] == [0, 0]

    def test_none_distribution_links_nothing(self, service, db_session, alice, budgets):
        expense = service.create_expense(
            expense_payload(
                budget_ids=[b.id for b in budgets], budget_distribution=DistributionType.NONE
            ),
            alice.id,
        )

        assert expense.budget_links == []
        assert count(db_session, ExpenseBudgetLink) == 0

    def test_unknown_budget_rejected_without_side_effects(
        self, service, db_session, alice, budgets, goal
    ):
        payload = expense_payload(budget_ids=[budgets[0].id, 999], savings_goal_ids=[goal.id])

        with pytest.raises(NotFoundError):
            service.create_expense(payload, alice.id)

        assert count(db_session, Expense) == 0
        assert db_session.get(Budget, budgets[0].id).spent_amount == 0
        assert db_session.get(SavingsGoal, goal.id).current_amount == 20000

    def test_savings_goal_withdrawal(self, service, db_session, alice, goal):
        expense = service.create_expense(expense_payload(savings_goal_ids=[goal.id]), alice.id)

        db_session.refresh(goal)
        assert goal.current_amount == 15000
        assert expense.savings_goal_links[0].amount == 5000

    def test_savings_goal_withdrawal_clamps_at_zero(self, service, db_session, alice, goal):
        service.create_expense(expense_payload("300.00", savings_goal_ids=[goal.id]), alice.id)

        assert db_session.get(SavingsGoal, goal.id).current_amount == 0

    def test_links_and_ids_are_merged(self, service, db_session, alice, budgets):
        expense = service.create_expense(
            expense_payload(
                budget_links=[LinkItem(id=budgets[0].id)],
                budget_ids=[budgets[0].id, budgets[1].id],
            ),
            alice.id,
        )

        assert sorted(link.budget_id for link in expense.budget_links) == sorted(
            b.id for b in budgets
        )

    def test_unknown_category(self, service, alice):
        with pytest.raises(NotFoundError):
            service.create_expense(expense_payload(category_id=404), alice.id)

    def test_read_schema(self, service, alice, budgets):
        expense = service.create_expense(expense_payload(budget_ids=[budgets[0].id]), alice.id)

        read = ExpenseRead.model_validate(expense)

        assert read.amount == "50.00"
        assert read.budget_links[0].amount == "50.00"
        assert read.currency == "USD"


class TestBudgetThresholds:
    """Test budget alert notifications raised by allocations."""

    def test_alert_at_85_percent(self, service, alice, budgets, notifier):
        service.create_expense(expense_payload("850.00", budget_ids=[budgets[0].id]), alice.id)

        assert notifier.kinds() == [NotificationKind.BUDGET_ALERT]
        user_id, _, payload = notifier.sent[0]
        assert user_id == alice.id
        assert payload["percentage"] == "85.00"
        assert payload["spent_amount"] == "850.00"

    def test_exceeded_at_100_percent(self, service, alice, budgets, notifier):
        service.create_expense(expense_payload("1000.00", budget_ids=[budgets[0].id]), alice.id)

        assert notifier.kinds() == [NotificationKind.BUDGET_EXCEEDED]

    def test_below_threshold_is_silent(self, service, alice, budgets, notifier):
        service.create_expense(expense_payload("100.00", budget_ids=[budgets[0].id]), alice.id)

        assert notifier.sent == []

    def test_alert_fires_again_on_every_allocation(self, service, alice, budgets, notifier):
        for _ in range(2):
            service.create_expense(expense_payload("900.00", budget_ids=[budgets[0].id]), alice.id)

        assert notifier.kinds() == [NotificationKind.BUDGET_ALERT, NotificationKind.BUDGET_EXCEEDED]

    def test_rejected_expense_sends_nothing(self, service, alice, budgets, notifier):
        with pytest.raises(NotFoundError):
            service.create_expense(
                expense_payload("900.00", budget_ids=[budgets[0].id, 999]), alice.id
            )

        assert notifier.sent == []


class TestReversal:
    """Test unlink and delete restore bucket totals."""

    def test_unlink_restores_budget(self, service, db_session, alice, budgets):
        food = budgets[0]
        expense = service.create_expense(expense_payload(budget_ids=[food.id]), alice.id)
        assert db_session.get(Budget, food.id).spent_amount == 5000

        expense = service.unlink_expense(
            expense.id, UnlinkExpensePayload(budget_ids=[food.id]), alice.id
        )

        assert db_session.get(Budget, food.id).spent_amount == 0
        assert expense.budget_links == []
        assert count(db_session, ExpenseBudgetLink) == 0
        assert count(db_session, Expense) == 1

    def test_delete_restores_budget(self, service, db_session, alice, budgets):
        food = budgets[0]
        expense = service.create_expense(expense_payload(budget_ids=[food.id]), alice.id)

        service.delete_expense(expense.id, alice.id)

        assert db_session.get(Budget, food.id).spent_amount == 0
        assert count(db_session, Expense) == 0
        assert count(db_session, ExpenseBudgetLink) == 0

    def test_unlink_only_named_buckets(self, service, db_session, alice, budgets, goal):
        expense = service.create_expense(
            expense_payload(budget_ids=[b.id for b in budgets], savings_goal_ids=[goal.id]),
            alice.id,
        )

        payload = UnlinkExpensePayload(budget_ids=[budgets[1].id, 999], savings_goal_ids=[goal.id])
        expense = service.unlink_expense(expense.id, payload, alice.id)

        assert [link.budget_id for link in expense.budget_links] == [budgets[0].id]
        assert expense.savings_goal_links == []
        assert [db_session.get(Budget, b.id).spent_amount for b in budgets] == [5000, 0]
        assert db_session.get(SavingsGoal, goal.id).current_amount == 20000

    def test_delete_restores_savings_goal_and_completes(self, service, db_session, alice):
        goal = SavingsGoal(
            name="Bike",
            target_amount=10000,
            current_amount=10000,
            status=SavingsGoalStatus.COMPLETED,
            user_id=alice.id,
        )
        db_session.add(goal)
        db_session.commit()

        payload = expense_payload("30.00", savings_goal_ids=[goal.id])
        expense = service.create_expense(payload, alice.id)
        db_session.refresh(goal)
        assert (goal.current_amount, goal.status) == (7000, SavingsGoalStatus.ACTIVE)

        service.delete_expense(expense.id, alice.id)

        db_session.refresh(goal)
        assert (goal.current_amount, goal.status) == (10000, SavingsGoalStatus.COMPLETED)
        assert count(db_session, ExpenseSavingsGoalLink) == 0

    def test_other_owner_cannot_delete(self, service, db_session, alice, bob, budgets):
        expense = service.create_expense(expense_payload(budget_ids=[budgets[0].id]), alice.id)

        with pytest.raises(NotFoundError):
            service.delete_expense(expense.id, bob.id)
        assert db_session.get(Budget, budgets[0].id).spent_amount == 5000


class TestUpdateExpense:
    """Test patching expenses and adding links."""

    def test_existing_links_are_skipped(self, service, db_session, alice, budgets):
        expense = service.create_expense(expense_payload(budget_ids=[budgets[0].id]), alice.id)

        service.update_expense(
            expense.id, UpdateExpensePayload(budget_ids=[budgets[0].id]), alice.id
        )

        assert db_session.get(Budget, budgets[0].id).spent_amount == 5000
        assert count(db_session, ExpenseBudgetLink) == 1

    def test_new_link_uses_updated_amount(self, service, db_session, alice, budgets):
        expense = service.create_expense(expense_payload(budget_ids=[budgets[0].id]), alice.id)

        expense = service.update_expense(
            expense.id,
            UpdateExpensePayload(amount=Decimal("80.00"), budget_ids=[budgets[1].id]),
            alice.id,
        )

        assert expense.amount == 8000
        assert [db_session.get(Budget, b.id).spent_amount for b in budgets] == [5000, 8000]

    def test_patch_scalar_fields(self, service, alice):
        expense = service.create_expense(expense_payload(), alice.id)

        expense = service.update_expense(
            expense.id,
            UpdateExpensePayload(description="Farmers market", location="Main St"),
            alice.id,
        )

        assert expense.description == "Farmers market"
        assert expense.location == "Main St"
        assert expense.amount == 5000

    def test_update_rejected_leaves_expense_untouched(self, service, alice, budgets):
        expense = service.create_expense(expense_payload(), alice.id)

        with pytest.raises(NotFoundError):
            service.update_expense(
                expense.id,
                UpdateExpensePayload(description="Changed", budget_ids=[999]),
                alice.id,
            )

        assert service.get_expense(expense.id, alice.id).description == "Weekly shop"


class TestExpenseQueries:
    """Test reads and search."""

    def test_list_filters_and_search(self, service, alice, bob, category):
        service.create_expense(
            expense_payload(description="Coffee beans", date=datetime(2026, 3, 1)), alice.id
        )
        service.create_expense(
            expense_payload(
                description="Lunch",
                notes="with the team",
                category_id=category.id,
                date=datetime(2026, 3, 10),
            ),
            alice.id,
        )
        service.create_expense(expense_payload(description="Coffee"), bob.id)

        assert [e.description for e in service.list_expenses(alice.id)] == [
            "Lunch",
            "Coffee beans",
        ]
        assert [e.description for e in service.list_expenses(alice.id, query="coffee")] == [
            "Coffee beans"
        ]
        assert [e.description for e in service.list_expenses(alice.id, query="TEAM")] == ["Lunch"]
        assert [
            e.description for e in service.list_expenses(alice.id, category_id=category.id)
        ] == ["Lunch"]
        assert [
            e.description
            for e in service.list_expenses(alice.id, start_date=datetime(2026, 3, 5))
        ] == ["Lunch"]

    def test_get_other_owners_expense_is_missing(self, service, alice, bob):
        expense = service.create_expense(expense_payload(), alice.id)

        with pytest.raises(NotFoundError):
            service.get_expense(expense.id, bob.id)


class TestBuildSelection:
    """Test merging link items with plain ids."""

    def test_merge_order_and_amounts(self):
        selection = build_selection(
            [LinkItem(id=3, amount=Decimal("1.50")), LinkItem(id=1)], [1, 2], tolerance=1
        )

        assert list(selection.bucket_ids) == [3, 1, 2]
        assert dict(selection.amounts) == {3: 150}

    def test_skip_existing(self):
        selection = build_selection(None, [1, 2, 3], tolerance=1, skip={2})

        assert list(selection.bucket_ids) == [1, 3]


class TestConcurrentBucketUpdates:
    """Test that interleaved writes to one budget never lose an update."""

    def test_stale_budget_write_is_rejected(self, engine, alice, budgets, settings):
        food_id = budgets[0].id
        session_factory = make_session_factory(engine)
        first, second = session_factory(), session_factory()
        try:
            with pytest.raises(ConcurrencyError):
                with atomic(second):
                    stale = find_budget(second, food_id, lock=True)
                    BucketLedger().apply_budget(stale, 500)

                    ExpenseService(first, settings=settings).create_expense(
                        expense_payload("10.00", budget_ids=[food_id]), alice.id
                    )

            assert second.get(Budget, food_id).spent_amount == 1000
        finally:
            first.close()
            second.close()

        check = session_factory()
        try:
            budget = check.get(Budget, food_id)
            assert (budget.spent_amount, budget.version) == (1000, 2)
        finally:
            check.close()
