"""周期规则计算 -- 给定日期和规则，推算下一次到期时间

按日历推算（非固定时长偏移）：
- 在指定时区的墙上时间上做加法，跨夏令时不改变钟点
- monthly/yearly 使用 relativedelta，短月自动截断到月末
  （1 月 31 日 + 1 月 -> 2 月最后一天；2 月 29 日 + 1 年 -> 2 月 28 日）
"""

from datetime import UTC, date, datetime, tzinfo

from dateutil.relativedelta import relativedelta

from .models.enums import RepeatOption

_STEPS: dict[RepeatOption, relativedelta] = {
    RepeatOption.DAILY: relativedelta(days=1),
    RepeatOption.WEEKLY: relativedelta(days=7),
    RepeatOption.MONTHLY: relativedelta(months=1),
    RepeatOption.YEARLY: relativedelta(years=1),
}


def next_due_date(
    from_dt: datetime,
    rule: RepeatOption,
    tz: tzinfo = UTC,
) -> datetime | None:
    """推算下一次到期时间

    Args:
        from_dt: 起点（naive 视为 UTC）
        rule: 周期规则
        tz: 日历时区

    Returns:
        tz 时区下的 aware datetime；rule 为 never 时返回 None
    """
    step = _STEPS.get(rule)
    if step is None:
        return None

    if from_dt.tzinfo is None:
        from_dt = from_dt.replace(tzinfo=UTC)

    wall = from_dt.astimezone(tz).replace(tzinfo=None)
    candidate = (wall + step).replace(tzinfo=tz)
    # 经 UTC 往返一次，规整夏令时空档中不存在的钟点
    return candidate.astimezone(UTC).astimezone(tz)


def same_day(a: datetime, b: datetime, tz: tzinfo = UTC) -> bool:
    """两个时间在 tz 时区内是否为同一日历日"""
    return local_day(a, tz) == local_day(b, tz)


def local_day(value: datetime, tz: tzinfo = UTC) -> date:
    """value 在 tz 时区内的日历日"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(tz).date()


def start_of_day(day: date, tz: tzinfo = UTC) -> datetime:
    """tz 时区内某日历日的零点"""
    return datetime(day.year, day.month, day.day, tzinfo=tz)
