# services/change_log.py
# 일정 변경 이력(필드 단위)
# - 변경 여부는 타입 값으로 비교하고, 이력에는 사람이 읽을 수 있는 문자열로 남김
# - 한 작업에서 나온 이력은 같은 action / 작업자로 한 번에 추가됨
import logging
from datetime import datetime
from typing import Any, Dict, List, NamedTuple

from models.schedule import Schedule, ScheduleLog
from services.schedule_store import ScheduleStore
from services.schedule_time import render_timestamp

logger = logging.getLogger(__name__)

ACTION_CREATE = "create schedule"
ACTION_UPDATE = "update schedule"
ACTION_MOVE = "move schedule"
ACTION_DELETE = "delete schedule"

TRACKED_FIELDS = (
    "title",
    "description",
    "start_time",
    "end_time",
    "location",
    "status",
    "all_day",
    "visibility",
    "extra_data",
    "recurrence_pattern",
    "priority",
    "video_transcript",
    "position",
    "board_column_id",
)


class FieldChange(NamedTuple):
    field: str
    old_value: str
    new_value: str


def render_value(value: Any) -> str:
    """
    필드 값을 이력용 문자열로 바꾼다.

    :param value: 필드 값(None/bool/int/datetime/str)
    :type value: Any
    :return: None -> "", bool -> "true"/"false", datetime -> ISO, 그 외 str()
    :rtype: str
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return render_timestamp(value)
    return str(value)


def snapshot(schedule: Schedule) -> Dict[str, Any]:
    return {name: getattr(schedule, name) for name in TRACKED_FIELDS}


def diff(before: Dict[str, Any], after: Dict[str, Any]) -> List[FieldChange]:
    changes: List[FieldChange] = []
    for name in TRACKED_FIELDS:
        old, new = before.get(name), after.get(name)
        if old == new:
            continue
        changes.append(FieldChange(name, render_value(old), render_value(new)))
    return changes


class ChangeLogRecorder:
    def __init__(self, store: ScheduleStore):
        self.store = store

    def record_changes(
        self,
        schedule: Schedule,
        actor_id: int,
        action: str,
        before: Dict[str, Any],
    ) -> List[ScheduleLog]:
        """
        변경 전 스냅샷과 현재 일정 값을 비교해 바뀐 필드마다 이력 1건을 추가한다.
        바뀐 필드가 없으면 아무 것도 추가하지 않음.

        :param schedule: 변경이 반영된 일정
        :type schedule: Schedule
        :param actor_id: 작업자(workspace_user_id)
        :type actor_id: int
        :param action: 이력 action 라벨
        :type action: str
        :param before: snapshot()으로 뜬 변경 전 값
        :type before: Dict[str, Any]
        :return: 추가된 이력 목록
        :rtype: List[ScheduleLog]
        """

        logs = [
            ScheduleLog(
                schedule_id=schedule.id,
                workspace_user_id=actor_id,
                action=action,
                field_changed=c.field,
                old_value=c.old_value,
                new_value=c.new_value,
            )
            for c in diff(before, snapshot(schedule))
        ]
        if logs:
            self.store.add_all(logs)
            logger.debug(
                "Schedule %s %s: %s",
                schedule.id, action, ", ".join(log.field_changed for log in logs),
            )
        return logs

    def record_event(self, schedule: Schedule, actor_id: int, action: str) -> ScheduleLog:
        # 생성/삭제처럼 필드 단위가 아닌 이벤트
        log = ScheduleLog(
            schedule_id=schedule.id,
            workspace_user_id=actor_id,
            action=action,
        )
        self.store.add(log)
        return log
