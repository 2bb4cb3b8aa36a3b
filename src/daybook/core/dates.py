"""日期工具 -- ISO 日期解析/格式化、周起始计算、日程摘要

所有日期均为本地日历日期（datetime.date），不涉及时区换算。
展示格式沿用 it-IT 短格式：「04 mar」「04 mar 2024」「lun 04 mar」。
"""

import re
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

_ISO_DATE_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")

# it-IT 月份/星期缩写（星期从周一开始，对齐 date.weekday()）
MONTH_ABBR = (
    "gen", "feb", "mar", "apr", "mag", "giu",
    "lug", "ago", "set", "ott", "nov", "dic",
)
WEEKDAY_ABBR = ("lun", "mar", "mer", "gio", "ven", "sab", "dom")

ONE_DAY = timedelta(days=1)


def parse_iso_date(value: str | None) -> date | None:
    """严格解析 YYYY-MM-DD

    形状不符或日历上不存在的日期（如 2024-02-30）返回 None。
    """
    if not value:
        return None
    match = _ISO_DATE_RE.fullmatch(value)
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    if not year or not month or not day:
        return None
    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    # 年月日回读校验
    if (parsed.year, parsed.month, parsed.day) != (year, month, day):
        return None
    return parsed


def format_iso_date(value: date) -> str:
    """格式化为补零的 YYYY-MM-DD"""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def today_iso() -> str:
    """今天的 ISO 日期字符串"""
    return format_iso_date(date.today())


def start_of_week(value: date | datetime | None = None) -> date | datetime:
    """返回所在周的周一（周一至周日为一周）

    周日映射到前一个周一；传入 datetime 时时间部分归零。
    """
    if value is None:
        value = date.today()
    monday = value - timedelta(days=value.weekday())
    if isinstance(monday, datetime):
        return datetime.combine(monday.date(), time.min, tzinfo=monday.tzinfo)
    return monday


def add_days(value: date, days: int) -> date:
    """按日历偏移天数（自动处理跨月/跨年）"""
    return value + timedelta(days=days)


def week_days(start: date, length: int = 7) -> list[date]:
    """从 start 开始的连续 length 天"""
    return [add_days(start, offset) for offset in range(length)]


def _day_with_month(value: date) -> tuple[str, str]:
    return f"{value.day:02d}", MONTH_ABBR[value.month - 1]


def format_display_date(
    value: str,
    with_year: bool = False,
    with_weekday: bool = False,
) -> str:
    """短格式展示日期，解析失败时原样返回输入"""
    parsed = parse_iso_date(value)
    if parsed is None:
        return value
    day, month = _day_with_month(parsed)
    parts = [day, month]
    if with_year:
        parts.append(str(parsed.year))
    if with_weekday:
        parts.insert(0, WEEKDAY_ABBR[parsed.weekday()])
    return " ".join(parts)


def _display(value: date) -> str:
    return format_display_date(format_iso_date(value))


def format_work_days_summary(days: Iterable[str | date] | None) -> str:
    """将一组工作日压缩为简短标签

    - 空集合 -> ""
    - 同月连续 -> "04-06 mar"
    - 跨月连续 -> "30 apr - 02 mag"
    - 不连续且不超过 2 天 -> "04 mar, 20 mar"
    - 不连续且超过 2 天 -> "04 mar, 06 mar +2"
    """
    if not days:
        return ""
    parsed: set[date] = set()
    for day in days:
        if isinstance(day, date):
            parsed.add(day)
        elif (value := parse_iso_date(day)) is not None:
            parsed.add(value)
    if not parsed:
        return ""
    ordered = sorted(parsed)

    consecutive = all(
        current - previous == ONE_DAY
        for previous, current in zip(ordered, ordered[1:])
    )
    if consecutive and len(ordered) > 1:
        start, end = ordered[0], ordered[-1]
        if (start.year, start.month) == (end.year, end.month):
            start_day, _ = _day_with_month(start)
            end_day, month = _day_with_month(end)
            return f"{start_day}-{end_day} {month}"
        return f"{_display(start)} - {_display(end)}"

    if len(ordered) <= 2:
        return ", ".join(_display(day) for day in ordered)

    first_two = ", ".join(_display(day) for day in ordered[:2])
    return f"{first_two} +{len(ordered) - 2}"
