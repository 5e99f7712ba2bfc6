"""Integration tests for read-only analytics."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from fintrack.models import (
    Bill,
    BillParticipant,
    BillSplitType,
    BillStatus,
    Budget,
    Expense,
    SavingsGoal,
    SavingsGoalStatus,
)
from fintrack.schemas.analytics import (
    BillDetailsRead,
    BillsSummaryRead,
    ExpensesSummaryRead,
    SavingsGoalProgressRead,
)
from fintrack.services.analytics_service import (
    AnalyticsService,
    SummaryPeriod,
    format_time_left,
    period_window,
)


@pytest.fixture
def service(db_session, settings):
    return AnalyticsService(db_session, settings)


def add_bill(db_session, category, creator, due_date, shares, status=BillStatus.PENDING):
    """Persist a bill with ``shares`` as ``[(user, amount_owed, is_paid), ...]``."""
    bill = Bill(
        name="Bill",
        total_amount=sum(amount for _, amount, _ in shares),
        split_type=BillSplitType.MANUAL,
        due_date=due_date,
        status=status,
        category_id=category.id,
        created_by_id=creator.id,
    )
    bill.participants = [
        BillParticipant(user_id=user.id, amount_owed=amount, is_paid=paid)
        for user, amount, paid in shares
    ]
    db_session.add(bill)
    db_session.commit()
    return bill


class TestBillAnalytics:
    """Test bill progress and dashboard summary."""

    def test_progress_counts_paid_participants(
        self, service, db_session, category, alice, bob, carol
    ):
        bill = add_bill(
            db_session,
            category,
            alice,
            date(2026, 3, 1),
            [(alice, 1000, True), (bob, 1000, False), (carol, 1000, False)],
        )

        progress = service.bill_progress(bill)

        assert (progress.paid_count, progress.total_count) == (1, 3)
        assert progress.progress == Decimal("33.33")

    def test_progress_without_participants(self, service, db_session, category, alice):
        bill = add_bill(db_session, category, alice, date(2026, 3, 1), [])

        assert service.bill_progress(bill).progress == 0

    def test_bills_summary(self, service, db_session, category, alice, bob, carol):
        today = date(2026, 3, 15)
        add_bill(
            db_session,
            category,
            alice,
            date(2026, 3, 20),
            [(alice, 2000, False), (bob, 3000, False), (carol, 1000, True)],
            status=BillStatus.PARTIAL,
        )
        add_bill(
            db_session,
            category,
            bob,
            date(2026, 4, 2),
            [(alice, 1500, False), (bob, 1500, True)],
            status=BillStatus.PARTIAL,
        )
        add_bill(
            db_session,
            category,
            carol,
            date(2026, 3, 2),
            [(alice, 500, True), (carol, 500, True)],
            status=BillStatus.COMPLETED,
        )
        add_bill(db_session, category, bob, date(2026, 3, 3), [(bob, 700, False)])

        summary = service.bills_summary(alice.id, today=today)

        assert summary.total_bills == 6000 + 3000 + 1000
        assert summary.you_owe == 2000 + 1500
        assert summary.owed_to_you == 3000
        assert summary.active_bills == 2
        assert summary.bills_this_month == 2

        read = BillsSummaryRead.model_validate(summary._asdict())
        assert read.you_owe == "35.00"

    def test_bill_details(self, service, db_session, category, alice, bob):
        bill = add_bill(
            db_session,
            category,
            alice,
            date(2026, 3, 1),
            [(alice, 2500, True), (bob, 7500, False)],
        )

        details = service.bill_details(bill)

        assert details.split_type_display == "Manual Split"
        assert (details.paid_count, details.pending_count) == (1, 1)
        assert details.paid_amount == 2500
        assert details.progress == Decimal("50.00")

        read = BillDetailsRead.model_validate(details._asdict())
        assert [p.amount_owed for p in read.payments] == ["25.00", "75.00"]
        assert read.model_dump(mode="json")["progress"] == "50.00"


class TestExpenseAnalytics:
    """Test expense summaries over a period."""

    @pytest.fixture
    def expenses(self, db_session, alice, bob, category):
        rows = [
            Expense(user_id=alice.id, amount=1000, description="a", date=datetime(2026, 3, 14, 9)),
            Expense(
                user_id=alice.id,
                amount=3000,
                description="b",
                category_id=category.id,
                date=datetime(2026, 3, 2, 18),
            ),
            Expense(
                user_id=alice.id,
                amount=500,
                description="c",
                category_id=category.id,
                date=datetime(2026, 1, 20),
            ),
            Expense(user_id=bob.id, amount=9999, description="d", date=datetime(2026, 3, 14)),
        ]
        db_session.add_all(rows)
        db_session.commit()
        return rows

    def test_month_summary(self, service, expenses, alice, category):
        summary = service.expenses_summary(alice.id, SummaryPeriod.MONTH, today=date(2026, 3, 15))

        assert summary.total_spent == 4000
        assert summary.total_transactions == 2
        assert summary.average_transaction == 2000
        assert summary.categorized_count == 1
        assert summary.top_category_id == category.id
        assert sorted(summary.category_breakdown, key=lambda item: item.amount) == [
            (None, 1000),
            (category.id, 3000),
        ]

    def test_week_summary(self, service, expenses, alice):
        summary = service.expenses_summary(alice.id, SummaryPeriod.WEEK, today=date(2026, 3, 15))

        assert summary.total_spent == 1000
        assert summary.top_category_id is None

    def test_year_summary(self, service, expenses, alice):
        summary = service.expenses_summary(alice.id, SummaryPeriod.YEAR, today=date(2026, 3, 15))

        assert summary.total_spent == 4500
        assert summary.total_transactions == 3

        read = ExpensesSummaryRead.model_validate(summary._asdict())
        assert read.total_spent == "45.00"
        assert read.average_transaction == "15.00"

    def test_empty_period(self, service, alice):
        summary = service.expenses_summary(alice.id, today=date(2026, 3, 15))

        assert summary.total_spent == 0
        assert summary.average_transaction == 0
        assert summary.category_breakdown == []

    def test_period_window(self):
        today = date(2026, 3, 15)

        assert period_window(SummaryPeriod.WEEK, today) == (date(2026, 3, 8), today)
        assert period_window(SummaryPeriod.MONTH, today) == (date(2026, 3, 1), today)
        assert period_window(SummaryPeriod.YEAR, today) == (date(2026, 1, 1), today)


class TestBudgetUsage:
    """Test budget usage flags."""

    @pytest.mark.parametrize(
        "spent, alert, exceeded",
        [(1000, False, False), (8500, True, False), (10000, True, True), (12000, True, True)],
    )
    def test_flags(self, service, alice, spent, alert, exceeded):
        budget = Budget(id=1, name="Food", total_amount=10000, spent_amount=spent)

        usage = service.budget_usage(budget)

        assert (usage.is_alert, usage.is_exceeded) == (alert, exceeded)
        assert usage.remaining_amount == max(0, 10000 - spent)


class TestSavingsGoalAnalytics:
    """Test goal progress, schedule status and summary."""

    @pytest.fixture
    def today(self):
        return date(2026, 6, 1)

    def make_goal(self, current, target=10000, days_left=100, age_days=100, status=None):
        today = date(2026, 6, 1)
        return SavingsGoal(
            id=1,
            name="Car",
            target_amount=target,
            current_amount=current,
            target_date=today + timedelta(days=days_left),
            status=status or SavingsGoalStatus.ACTIVE,
            created_at=datetime.combine(today - timedelta(days=age_days), datetime.min.time()),
        )

    def test_on_track(self, service, today):
        # Half the time elapsed, 45% saved: within the 10 point margin
        progress = service.savings_goal_progress(self.make_goal(4500), today=today)

        assert progress.calculated_status == SavingsGoalStatus.ON_TRACK
        assert progress.progress_percentage == Decimal("45.00")
        assert progress.amount_remaining == 5500
        assert progress.days_left == 100
        assert progress.months_left == 4
        assert progress.time_left_display == "4 months"

    def test_behind(self, service, today):
        progress = service.savings_goal_progress(self.make_goal(3000), today=today)

        assert progress.calculated_status == SavingsGoalStatus.BEHIND

    def test_overdue(self, service, today):
        progress = service.savings_goal_progress(self.make_goal(3000, days_left=-3), today=today)

        assert progress.calculated_status == SavingsGoalStatus.OVERDUE
        assert progress.is_overdue is True
        assert progress.time_left_display == "Overdue"

    def test_completed(self, service, today):
        goal = self.make_goal(10000, days_left=-3, status=SavingsGoalStatus.COMPLETED)

        progress = service.savings_goal_progress(goal, today=today)

        assert progress.calculated_status == SavingsGoalStatus.COMPLETED
        assert progress.is_completed is True
        assert progress.is_overdue is False
        assert progress.amount_remaining == 0

    def test_without_target_date(self, service, today):
        goal = self.make_goal(2000)
        goal.target_date = None

        progress = service.savings_goal_progress(goal, today=today)

        assert progress.days_left is None
        assert progress.calculated_status == SavingsGoalStatus.ACTIVE
        read = SavingsGoalProgressRead.model_validate(progress._asdict())
        assert read.model_dump(mode="json")["progress_percentage"] == "20.00"

    @pytest.mark.parametrize(
        "days_left, expected",
        [(0, "Today"), (1, "1 day"), (12, "12 days"), (30, "1 month"), (31, "2 months")],
    )
    def test_format_time_left(self, days_left, expected):
        assert format_time_left(days_left) == expected

    def test_summary(self, service, db_session, alice):
        db_session.add_all(
            [
                SavingsGoal(
                    name="A", target_amount=10000, current_amount=10000, user_id=alice.id,
                    status=SavingsGoalStatus.COMPLETED, monthly_target=1000,
                ),
                SavingsGoal(name="B", target_amount=30000, current_amount=5000, user_id=alice.id),
            ]
        )
        db_session.commit()

        summary = service.savings_goals_summary(alice.id)

        assert summary.total_target == 40000
        assert summary.total_saved == 15000
        assert summary.progress_percentage == Decimal("37.50")
        assert (summary.completed_goals, summary.active_goals, summary.total_goals) == (1, 1, 2)
        assert summary.monthly_target == 1000
