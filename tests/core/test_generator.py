"""OccurrenceGenerator 单元测试

测试内容：
1. 按数量 / horizon 生成
2. 幂等性（重复生成不产生同日实例）
3. not_before 不回填过去日期
4. 字段复制与边界条件
"""

import itertools
from datetime import UTC, date, datetime, timedelta

import pytest
from homie.core.config import MAX_GENERATION_STEPS
from homie.core.generator import generate_occurrences
from homie.core.models import RepeatOption, Task


def _root(
    repeat: RepeatOption = RepeatOption.DAILY,
    due: datetime = datetime(2024, 1, 1, 9, 0, tzinfo=UTC),
) -> Task:
    return Task(
        task_id="root",
        name="Dishes",
        due_date=due,
        assigned_to="person-1",
        notes="use the green sponge",
        repeat_option=repeat,
        owner_id="acct-1",
    )


class TestGenerateByCount:
    def test_daily_batch(self):
        occurrences = generate_occurrences(_root(), [], count=10)

        assert len(occurrences) == 10
        assert [o.due_date.date() for o in occurrences] == [
            date(2024, 1, day) for day in range(2, 12)
        ]

    def test_weekly_three_occurrences(self):
        root = _root(RepeatOption.WEEKLY)

        occurrences = generate_occurrences(root, [], count=3)

        days = [o.due_date.date() for o in occurrences]
        assert days == [date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22)]
        assert [o.due_date - root.due_date for o in occurrences] == [
            timedelta(days=7),
            timedelta(days=14),
            timedelta(days=21),
        ]
        assert len(set(days)) == 3

    def test_copies_root_fields(self):
        occurrence = generate_occurrences(_root(), [], count=1)[0]

        assert occurrence.parent_task_id == "root"
        assert occurrence.name == "Dishes"
        assert occurrence.assigned_to == "person-1"
        assert occurrence.notes == "use the green sponge"
        assert occurrence.repeat_option == RepeatOption.DAILY
        assert occurrence.owner_id == "acct-1"
        assert occurrence.is_completed is False
        assert occurrence.task_id != "root"

    def test_continues_from_latest_existing(self):
        first = generate_occurrences(_root(), [], count=3)
        more = generate_occurrences(_root(), first, count=2)

        assert [o.due_date.date() for o in more] == [date(2024, 1, 5), date(2024, 1, 6)]

    def test_monthly_from_month_end(self):
        root = _root(RepeatOption.MONTHLY, datetime(2024, 1, 31, tzinfo=UTC))
        occurrences = generate_occurrences(root, [], count=3)

        assert [o.due_date.date() for o in occurrences] == [
            date(2024, 2, 29),
            date(2024, 3, 29),
            date(2024, 4, 29),
        ]

    def test_custom_id_factory(self):
        counter = itertools.count(1)
        occurrences = generate_occurrences(
            _root(), [], count=2, id_factory=lambda: f"occ-{next(counter)}"
        )
        assert [o.task_id for o in occurrences] == ["occ-1", "occ-2"]


class TestGenerateByHorizon:
    def test_stops_before_horizon(self):
        horizon = datetime(2024, 1, 5, tzinfo=UTC)
        occurrences = generate_occurrences(_root(), [], horizon=horizon)

        assert [o.due_date.date() for o in occurrences] == [
            date(2024, 1, 2),
            date(2024, 1, 3),
            date(2024, 1, 4),
        ]

    def test_idempotent(self):
        """已有实例覆盖 horizon 时不再生成"""
        horizon = datetime(2024, 1, 10, tzinfo=UTC)
        first = generate_occurrences(_root(), [], horizon=horizon)
        second = generate_occurrences(_root(), first, horizon=horizon)

        assert second == []

    def test_no_same_day_duplicates(self):
        horizon = datetime(2024, 2, 1, tzinfo=UTC)
        first = generate_occurrences(_root(), [], count=5)
        second = generate_occurrences(_root(), first, horizon=horizon)

        days = [o.due_date.date() for o in [*first, *second]]
        assert len(days) == len(set(days))
        assert date(2024, 1, 1) not in days

    def test_count_and_horizon_whichever_first(self):
        horizon = datetime(2024, 2, 1, tzinfo=UTC)
        occurrences = generate_occurrences(_root(), [], count=2, horizon=horizon)
        assert len(occurrences) == 2

    def test_step_limit(self):
        horizon = datetime(2100, 1, 1, tzinfo=UTC)
        occurrences = generate_occurrences(_root(), [], horizon=horizon)
        assert len(occurrences) == MAX_GENERATION_STEPS


class TestNotBefore:
    def test_skips_past_candidates(self):
        root = _root(due=datetime(2023, 12, 25, 9, 0, tzinfo=UTC))
        occurrences = generate_occurrences(
            root, [], count=3, not_before=datetime(2024, 1, 1, tzinfo=UTC)
        )

        assert [o.due_date.date() for o in occurrences] == [
            date(2024, 1, 1),
            date(2024, 1, 2),
            date(2024, 1, 3),
        ]


class TestEdgeCases:
    def test_never_rule_generates_nothing(self):
        assert generate_occurrences(_root(RepeatOption.NEVER), [], count=10) == []

    def test_zero_count(self):
        assert generate_occurrences(_root(), [], count=0) == []

    def test_requires_count_or_horizon(self):
        with pytest.raises(ValueError):
            generate_occurrences(_root(), [])
