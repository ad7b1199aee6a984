# services/schedule_time.py
# 시간 문자열 파싱 / 포맷

import re
from datetime import datetime, timezone
from typing import Optional, Union

# 예전 클라이언트가 보내는 형식(ex: 2025-08-26 12:34:56.000)
LEGACY_TS_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}) (\d{2}:\d{2}:\d{2})(?:\.0+)?$")


def _to_naive_utc(dt: datetime) -> datetime:
    # 타임존이 없으면 UTC로 간주
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    요청으로 들어온 시각 값을 DB 저장용(타임존 없는 UTC) datetime으로 바꾼다.
    ISO 8601(Z / +09:00 오프셋 포함 가능), YYYY-MM-DD, 예전 "YYYY-MM-DD HH:MM:SS.000" 형식을 받는다.

    :param value: 시각 문자열 또는 datetime(또는 None)
    :type value: Union[str, datetime, None]
    :return: UTC datetime 또는 None(입력이 None/빈 문자열)
    :rtype: Optional[datetime]
    :raises ValueError: 파싱 실패(조용히 무시하지 않음)
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    s = str(value).strip()
    if not s:
        return None
    m = LEGACY_TS_RE.match(s)
    if m:
        s = f"{m.group(1)}T{m.group(2)}"
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"invalid timestamp: {value!r}") from None
    return _to_naive_utc(dt)


def render_timestamp(dt: Optional[datetime]) -> str:
    """
    변경 이력에 남길 시각 문자열(YYYY-MM-DD HH:MM:SS, 초 단위까지). None이면 빈 문자열.
    """

    if dt is None:
        return ""
    return _to_naive_utc(dt).isoformat(sep=" ", timespec="seconds")
