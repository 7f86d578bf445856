"""
日期归一化。

所有"相差几天"的计算都在配置的时区里、按自然日进行：
带时区的时间戳先转到该时区再截断成 date；不带时区的视为已经是本地时间。
"""

from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..exceptions import ConfigurationError, ValidationError


def resolve_timezone(tz: Optional[Union[str, tzinfo]]) -> tzinfo:
    """None → UTC；字符串 → ZoneInfo；tzinfo 原样返回。"""
    if tz is None:
        return timezone.utc
    if isinstance(tz, tzinfo):
        return tz
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(
            message=f"Unknown timezone: {tz!r}.",
            code='INVALID_TIMEZONE',
            detail={'timezone': str(tz)},
        ) from exc


def _parse(value, field: str) -> Union[date, datetime]:
    if value is None or value == '':
        raise ValidationError(
            message=f"Required date field '{field}' is missing.",
            code='MISSING_FIELD',
            detail={'field': field},
        )
    if isinstance(value, (date, datetime)):
        return value
    if not isinstance(value, str):
        raise ValidationError(
            message=f"Field '{field}' must be an ISO 8601 date, got {type(value).__name__}.",
            code='INVALID_DATE',
            detail={'field': field, 'value': repr(value)},
        )

    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        # 文档库导出用 "Z" 表示 UTC，3.11 之前的 fromisoformat 不认
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(
            message=f"Field '{field}' is not a valid ISO 8601 date: {value!r}.",
            code='INVALID_DATE',
            detail={'field': field, 'value': value},
        ) from exc


def to_local_date(value, tz: tzinfo, field: str) -> date:
    parsed = _parse(value, field)
    if isinstance(parsed, datetime):
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(tz)
        return parsed.date()
    return parsed


def to_local_datetime(value, tz: tzinfo, field: str) -> datetime:
    """用于比较"哪张处方更新"：统一成带时区的 datetime。纯日期视为当天 00:00。"""
    parsed = _parse(value, field)
    if not isinstance(parsed, datetime):
        return datetime(parsed.year, parsed.month, parsed.day, tzinfo=tz)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def days_between(start: date, end: date) -> int:
    return (end - start).days
