# services/schedule_service.py
# 일정 서비스(생성/수정/이동/삭제 + 조회)
# - 저장소(ScheduleStore)는 생성자로 주입받음(전역 DB 핸들 없음)
# - 쓰기 작업 하나 = 트랜잭션 하나: 대상 일정 + 밀려난 형제들 + 변경 이력이 같이 커밋되거나 같이 롤백됨
import logging
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

from models.schedule import Schedule, ScheduleLog, ScheduleParticipant, utcnow
from services.change_log import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_MOVE,
    ACTION_UPDATE,
    ChangeLogRecorder,
    snapshot,
)
from services.errors import ConflictError, InvalidArgumentError, NotFoundError
from services.position_manager import PositionManager
from services.schedule_store import ScheduleStore
from services.schedule_time import parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_DURATION = timedelta(hours=1)
DEFAULT_STATUS = "not yet"
DEFAULT_VISIBILITY = "public"

PARTICIPANT_ROLE_CREATOR = "creator"
INVITATION_JOINED = "joined"

# update()로 바꿀 수 있는 필드. position / board_column_id는 move()로만 바꿈
EDITABLE_FIELDS = (
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
)
NON_NULL_FIELDS = ("title", "description", "status", "all_day", "visibility")
_TIME_FIELDS = ("start_time", "end_time")
_POSITION_FIELDS = ("position", "board_column_id")


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    요청 필드를 검증하고 시각 필드를 UTC datetime으로 바꾼다.

    :param fields: 필드 이름 -> 값
    :type fields: Dict[str, Any]
    :return: 정리된 필드 dict
    :rtype: Dict[str, Any]
    :raises InvalidArgumentError: 모르는 필드, 비울 수 없는 필드에 None/빈 제목, 파싱 안 되는 시각, bool이 아닌 all_day
    """

    unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
    if unknown:
        raise InvalidArgumentError(f"unknown fields: {', '.join(unknown)}")

    data = dict(fields)
    for name in NON_NULL_FIELDS:
        if name in data and data[name] is None:
            raise InvalidArgumentError(f"{name} cannot be null")
    if "title" in data and not str(data["title"]).strip():
        raise InvalidArgumentError("title is required")
    for name in _TIME_FIELDS:
        if name in data:
            try:
                data[name] = parse_timestamp(data[name])
            except ValueError as e:
                raise InvalidArgumentError(str(e)) from e
    if "all_day" in data and not isinstance(data["all_day"], bool):
        # "false" 같은 문자열을 True로 바꾸지 않음
        raise InvalidArgumentError(f"all_day must be a boolean: {data['all_day']!r}")
    return data


def _check_time_range(schedule: Schedule) -> None:
    if schedule.start_time and schedule.end_time and schedule.end_time < schedule.start_time:
        raise InvalidArgumentError("end_time must be after start_time")


class ScheduleService:
    def __init__(self, store: ScheduleStore):
        self.store = store
        self.positions = PositionManager(store)
        self.logs = ChangeLogRecorder(store)

    # 내부 헬퍼
    def _require_active(self, schedule_id: int) -> Schedule:
        schedule = self.store.get(schedule_id)
        if not schedule or not schedule.is_active:
            raise NotFoundError(f"schedule {schedule_id} not found")
        return schedule

    def _lock_and_reload(self, schedule_id: int, extra_columns: Iterable[int] = ()) -> Schedule:
        """
        일정이 속한 보드 컬럼(+ 추가 컬럼)을 잠근 뒤 일정을 다시 읽는다.
        잠그는 사이 다른 요청이 일정을 다른 컬럼으로 옮겼다면 ConflictError.

        :param schedule_id: 일정 id
        :type schedule_id: int
        :param extra_columns: 같이 잠글 보드 컬럼(이동 대상 컬럼)
        :type extra_columns: Iterable[int]
        :return: 잠금 이후 최신 상태의 활성 일정
        :rtype: Schedule
        :raises NotFoundError: 없거나 삭제된 일정
        :raises ConflictError: 잠금 전후로 컬럼이 바뀜
        """

        current = self._require_active(schedule_id)
        source = current.board_column_id
        self.store.lock_columns([source, *extra_columns])
        schedule = self._require_active(schedule_id)
        if schedule.board_column_id != source:
            raise ConflictError(f"schedule {schedule_id} was moved concurrently")
        return schedule

    # 쓰기 작업
    def create(
        self,
        board_column_id: int,
        workspace_id: int,
        actor_id: int,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Schedule:
        """
        일정을 컬럼 맨 뒤(활성 일정 수 + 1)에 만든다.
        작성자를 참여자(creator / joined)로 등록하고 "create schedule" 이력을 1건 남긴다.

        :param board_column_id: 보드 컬럼 id
        :type board_column_id: int
        :param workspace_id: 워크스페이스 id
        :type workspace_id: int
        :param actor_id: 작성자(workspace_user_id)
        :type actor_id: int
        :param fields: title(필수)/description/start_time/end_time/... 등
        :type fields: Optional[Dict[str, Any]]
        :return: 생성된 일정
        :rtype: Schedule
        :raises InvalidArgumentError: 제목 누락, 잘못된 시각 등
        """

        data = _clean_fields(fields or {})
        if "title" not in data:
            raise InvalidArgumentError("title is required")

        now = utcnow()
        start = data.get("start_time") or now
        end = data.get("end_time") or start + DEFAULT_DURATION

        with self.store.atomic():
            self.store.lock_columns([board_column_id])
            schedule = Schedule(
                workspace_id=workspace_id,
                board_column_id=board_column_id,
                title=data["title"],
                description=data.get("description", ""),
                start_time=start,
                end_time=end,
                location=data.get("location"),
                created_by=actor_id,
                status=data.get("status", DEFAULT_STATUS),
                all_day=data.get("all_day", False),
                visibility=data.get("visibility", DEFAULT_VISIBILITY),
                extra_data=data.get("extra_data"),
                recurrence_pattern=data.get("recurrence_pattern"),
                priority=data.get("priority"),
                video_transcript=data.get("video_transcript"),
                position=self.positions.next_position(board_column_id),
                is_deleted=False,
                created_at=now,
                updated_at=now,
            )
            _check_time_range(schedule)
            self.store.add(schedule)
            self.store.flush()  # schedule.id 필요

            self.store.add(ScheduleParticipant(
                schedule_id=schedule.id,
                workspace_user_id=actor_id,
                status=PARTICIPANT_ROLE_CREATOR,
                invitation_status=INVITATION_JOINED,
                assign_at=now,
                assign_by=actor_id,
                response_time=now,
                invitation_sent_at=now,
                created_at=now,
                updated_at=now,
            ))
            self.logs.record_event(schedule, actor_id, ACTION_CREATE)

        logger.info(
            "Created schedule %s in board column %s at position %s",
            schedule.id, board_column_id, schedule.position,
        )
        return schedule

    def update(self, schedule_id: int, actor_id: int, patch: Dict[str, Any]) -> Schedule:
        """
        patch에 들어있는 필드만 반영하고, 실제로 바뀐 필드마다 "update schedule" 이력을 남긴다.
        position / board_column_id는 받지 않음(move 사용).

        :param schedule_id: 일정 id
        :type schedule_id: int
        :param actor_id: 작업자(workspace_user_id)
        :type actor_id: int
        :param patch: 바꿀 필드만 담은 dict
        :type patch: Dict[str, Any]
        :return: 수정된 일정
        :rtype: Schedule
        :raises NotFoundError: 없거나 삭제된 일정
        :raises InvalidArgumentError: 위치 필드 포함, 필수 필드 비움, 잘못된 시각 등
        """

        moved = [k for k in _POSITION_FIELDS if k in patch]
        if moved:
            raise InvalidArgumentError(f"{', '.join(moved)} can only be changed by a move")
        data = _clean_fields(patch)

        with self.store.atomic():
            schedule = self._require_active(schedule_id)
            before = snapshot(schedule)
            for name, value in data.items():
                setattr(schedule, name, value)
            _check_time_range(schedule)
            changed = self.logs.record_changes(schedule, actor_id, ACTION_UPDATE, before)
            if changed:
                schedule.updated_at = utcnow()

        if changed:
            logger.info(
                "Updated schedule %s (%s)",
                schedule_id, ", ".join(log.field_changed for log in changed),
            )
        return schedule

    def move(
        self,
        schedule_id: int,
        actor_id: int,
        board_column_id: Optional[int],
        position: int,
    ) -> Schedule:
        """
        일정 순서를 바꾸거나 다른 컬럼으로 옮긴다.

        - board_column_id가 없거나 현재 컬럼과 같으면 컬럼 내 이동(1..N 범위 검사, 같은 위치면 no-op)
        - 다르면 컬럼 간 이동(대상 컬럼 끝을 넘는 위치는 맨 뒤로 붙임)

        :param schedule_id: 일정 id
        :type schedule_id: int
        :param actor_id: 작업자(workspace_user_id)
        :type actor_id: int
        :param board_column_id: 대상 보드 컬럼(None이면 현재 컬럼)
        :type board_column_id: Optional[int]
        :param position: 목표 위치(1부터)
        :type position: int
        :return: 이동된 일정
        :rtype: Schedule
        :raises NotFoundError: 없거나 삭제된 일정
        :raises InvalidArgumentError: 범위를 벗어난 위치
        """

        try:
            position = int(position)
        except (TypeError, ValueError):
            raise InvalidArgumentError(f"invalid position: {position!r}") from None

        extra = [board_column_id] if board_column_id is not None else []
        with self.store.atomic():
            schedule = self._lock_and_reload(schedule_id, extra)
            source = schedule.board_column_id
            before = snapshot(schedule)

            if board_column_id is None or board_column_id == source:
                plan = self.positions.plan_move_within(schedule, position)
            else:
                plan = self.positions.plan_move_across(schedule, board_column_id, position)

            if not plan.is_noop:
                PositionManager.apply(schedule, plan)
                schedule.updated_at = utcnow()
                self.logs.record_changes(schedule, actor_id, ACTION_MOVE, before)

        if plan.is_noop:
            logger.debug("Move of schedule %s is a no-op", schedule_id)
        else:
            logger.info(
                "Moved schedule %s: column %s pos %s -> column %s pos %s (%d siblings shifted)",
                schedule_id, before["board_column_id"], before["position"],
                schedule.board_column_id, schedule.position, len(plan.shifts),
            )
        return schedule

    def delete(self, schedule_id: int, actor_id: int) -> None:
        """
        소프트 삭제. 뒤쪽 형제들을 한 칸씩 당기고 "delete schedule" 이력을 남긴다.
        삭제된 일정의 position은 삭제 시점 값 그대로 둔다.

        :param schedule_id: 일정 id
        :type schedule_id: int
        :param actor_id: 작업자(workspace_user_id)
        :type actor_id: int
        :raises NotFoundError: 없거나 이미 삭제된 일정
        """

        with self.store.atomic():
            schedule = self._lock_and_reload(schedule_id)
            now = utcnow()
            schedule.mark_deleted(now)
            schedule.updated_at = now
            plan = self.positions.plan_delete(schedule)
            PositionManager.apply(schedule, plan)
            self.logs.record_event(schedule, actor_id, ACTION_DELETE)

        logger.info(
            "Deleted schedule %s from board column %s (%d siblings shifted)",
            schedule_id, schedule.board_column_id, len(plan.shifts),
        )

    # 조회
    def get(self, schedule_id: int) -> Schedule:
        # 삭제된 일정도 조회됨
        with self.store.atomic():
            schedule = self.store.get(schedule_id)
        if not schedule:
            raise NotFoundError(f"schedule {schedule_id} not found")
        return schedule

    def list_by_column(self, board_column_id: int, workspace_id: Optional[int] = None) -> List[Schedule]:
        """
        보드 컬럼의 활성 일정을 position 오름차순으로 반환한다. 호출할 때마다 현재 상태를 다시 읽음.
        """

        with self.store.atomic():
            return self.store.active_in_column(board_column_id, workspace_id=workspace_id)

    def list_by_workspace(self, workspace_id: int, include_deleted: bool = False) -> List[Schedule]:
        with self.store.atomic():
            return self.store.by_workspace(workspace_id, include_deleted=include_deleted)

    def list_logs(self, schedule_id: int) -> List[ScheduleLog]:
        with self.store.atomic():
            if not self.store.get(schedule_id):
                raise NotFoundError(f"schedule {schedule_id} not found")
            return self.store.logs_for(schedule_id)

    def list_participants(self, schedule_id: int) -> List[ScheduleParticipant]:
        with self.store.atomic():
            if not self.store.get(schedule_id):
                raise NotFoundError(f"schedule {schedule_id} not found")
            return self.store.participants_for(schedule_id)
