# uniform_stock/domain/date_range.py
"""
日期区间过滤（纯函数）

- start 向下取整到本地 00:00:00.000，end 向上取整到本地 23:59:59.999
- 记录时间戳落在 [start, end] 闭区间内才通过
- 任一端为空：不过滤
- 无时区的记录时间戳按本地墙上时间理解；缺失时间戳的记录在过滤时被排除
"""

from __future__ import annotations

from datetime import date, datetime, time, tzinfo
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union
from zoneinfo import ZoneInfo

T = TypeVar("T")

DateLike = Union[date, datetime]

DAY_START = time(0, 0, 0, 0)
DAY_END = time(23, 59, 59, 999000)


def local_tz(name: Optional[str] = None) -> Optional[tzinfo]:
    """
    配置了时区名 → ZoneInfo；未配置 → None，表示系统本地时区。

    系统本地时区按每个时间点各自换算偏移（夏令时前后不同），
    不能取“当前”偏移当作固定时区。
    """
    if name:
        return ZoneInfo(name)
    return None


def _at(day: date, t: time, tz: Optional[tzinfo]) -> datetime:
    if tz is None:
        return datetime.combine(day, t).astimezone()
    return datetime.combine(day, t, tzinfo=tz)


def _as_local(ts: datetime, tz: Optional[tzinfo]) -> datetime:
    if tz is None:
        # naive 视作系统本地墙上时间
        return ts.astimezone()
    if ts.tzinfo is None:
        return ts.replace(tzinfo=tz)
    return ts.astimezone(tz)


def _as_day(value: DateLike, tz: Optional[tzinfo]) -> date:
    if isinstance(value, datetime):
        return _as_local(value, tz).date()
    return value


def normalize_range(
    start: Optional[DateLike],
    end: Optional[DateLike],
    tz: Optional[tzinfo] = None,
) -> Optional[Tuple[datetime, datetime]]:
    """返回本地时区的 (start_of_day, end_of_day)；任一端缺失返回 None。tz=None 用系统本地时区。"""
    if start is None or end is None:
        return None
    lo = _at(_as_day(start, tz), DAY_START, tz)
    hi = _at(_as_day(end, tz), DAY_END, tz)
    return lo, hi


def in_range(
    ts: Optional[datetime],
    bounds: Optional[Tuple[datetime, datetime]],
    tz: Optional[tzinfo] = None,
) -> bool:
    if bounds is None:
        return True
    if ts is None:
        return False
    lo, hi = bounds
    return lo <= _as_local(ts, tz) <= hi


def _getter(field: str) -> Callable[[Any], Optional[datetime]]:
    def get(record: Any) -> Optional[datetime]:
        if isinstance(record, Mapping):
            return record.get(field)
        return getattr(record, field, None)

    return get


def filter_by_date_range(
    records: Iterable[T],
    field: str,
    start: Optional[DateLike],
    end: Optional[DateLike],
    tz: Optional[tzinfo] = None,
) -> List[T]:
    bounds = normalize_range(start, end, tz)
    if bounds is None:
        return list(records)
    get = _getter(field)
    return [r for r in records if in_range(get(r), bounds, tz)]
