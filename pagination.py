from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

MAX_PAGINATION_LIMIT = 100
# paging values are bound as signed 64-bit integers
INT64_MAX = 2**63 - 1

RawValue = Union[str, int, None]


@dataclass(frozen=True)
class ListFilter:
    limit: int = MAX_PAGINATION_LIMIT
    offset: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None


def _parse_int(raw: RawValue) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(raw.strip())
        except (AttributeError, ValueError):
            return None
    if not -INT64_MAX - 1 <= value <= INT64_MAX:
        return None
    return value


def resolve_limit(raw: RawValue) -> int:
    value = _parse_int(raw)
    if value is None or value <= 0 or value > MAX_PAGINATION_LIMIT:
        return MAX_PAGINATION_LIMIT
    return value


def resolve_offset(raw: RawValue) -> int:
    value = _parse_int(raw)
    if value is None or value < 0:
        return 0
    return value


def parse_filter_date(raw: Optional[str]) -> Optional[date]:
    """Lenient date for listing filters: anything unparseable means no filter."""
    if not raw:
        return None
    try:
        return datetime.strptime(raw.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError):
        return None


def parse_filter_flag(raw: Optional[str]) -> Optional[bool]:
    if raw is None:
        return None
    value = raw.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def resolve_list_filter(
    limit: RawValue = None,
    offset: RawValue = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> ListFilter:
    return ListFilter(
        limit=resolve_limit(limit),
        offset=resolve_offset(offset),
        start_date=parse_filter_date(start_date),
        end_date=parse_filter_date(end_date),
    )
