# services/position_manager.py
# 보드 컬럼 내 순서(position) 관리
#
# 불변식: 한 보드 컬럼의 활성 일정 position은 항상 정확히 1..N(빈칸/중복 없음)
# 삭제된 일정의 position은 삭제 시점 값으로 고정되고 다시 보지 않음
#
# 계획(plan)만 계산하고, 실제 반영(apply)은 ScheduleService가 트랜잭션 안에서 호출함
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from models.schedule import Schedule
from services.errors import InvalidArgumentError
from services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)


@dataclass
class PositionPlan:
    """
    한 작업에서 함께 커밋되어야 하는 position 변경 묶음.

    - board_column_id / position: 대상 일정이 놓일 위치(None이면 그대로)
    - shifts: (형제 일정, +1 또는 -1) 목록
    """

    board_column_id: Optional[int] = None
    position: Optional[int] = None
    shifts: List[Tuple[Schedule, int]] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return self.position is None and self.board_column_id is None and not self.shifts


class PositionManager:
    def __init__(self, store: ScheduleStore):
        self.store = store

    def next_position(self, column_id: int) -> int:
        """
        새 일정이 들어갈 위치 = 컬럼의 활성 일정 수 + 1 (형제 이동 없음)
        """

        return self.store.count_active(column_id) + 1

    def plan_move_within(self, schedule: Schedule, new_position: int) -> PositionPlan:
        """
        같은 컬럼 안에서 순서를 바꾼다.

        - new < old: [new, old-1] 구간의 형제를 +1
        - new > old: (old, new] 구간의 형제를 -1
        - new == old: 아무 것도 하지 않음

        :param schedule: 이동할 활성 일정
        :type schedule: Schedule
        :param new_position: 목표 위치(1..N)
        :type new_position: int
        :return: 적용할 계획(no-op일 수 있음)
        :rtype: PositionPlan
        :raises InvalidArgumentError: 1..N 범위를 벗어난 위치
        """

        column_id = schedule.board_column_id
        n = self.store.count_active(column_id)
        if new_position < 1 or new_position > n:
            raise InvalidArgumentError(
                f"position {new_position} out of range 1..{n} for board column {column_id}"
            )

        old_position = schedule.position
        if new_position == old_position:
            return PositionPlan()

        if new_position < old_position:
            siblings = self.store.active_in_column(
                column_id, min_position=new_position, max_position=old_position - 1,
                exclude_id=schedule.id,
            )
            shifts = [(s, 1) for s in siblings]
        else:
            siblings = self.store.active_in_column(
                column_id, min_position=old_position + 1, max_position=new_position,
                exclude_id=schedule.id,
            )
            shifts = [(s, -1) for s in siblings]
        return PositionPlan(position=new_position, shifts=shifts)

    def plan_move_across(self, schedule: Schedule, target_column_id: int, target_position: int) -> PositionPlan:
        """
        다른 컬럼으로 옮긴다. 두 단계로 계산함.

        A) 원래 컬럼: 빠진 자리 뒤의 형제들을 -1
        B) 대상 컬럼: target_position 이상인 형제가 있으면 모두 +1 후 그 자리에 놓고,
           없으면(끝을 넘는 위치) 맨 뒤(max + 1)에 붙인다. 에러로 처리하지 않음.

        :param schedule: 이동할 활성 일정
        :type schedule: Schedule
        :param target_column_id: 대상 보드 컬럼
        :type target_column_id: int
        :param target_position: 요청 위치(1 이상)
        :type target_position: int
        :return: 적용할 계획
        :rtype: PositionPlan
        :raises InvalidArgumentError: target_position < 1
        """

        if target_position < 1:
            raise InvalidArgumentError(f"position must be >= 1, got {target_position}")

        closing = self.store.active_in_column(
            schedule.board_column_id, min_position=schedule.position + 1, exclude_id=schedule.id,
        )
        shifts = [(s, -1) for s in closing]

        opening = self.store.active_in_column(
            target_column_id, min_position=target_position, exclude_id=schedule.id,
        )
        if opening:
            shifts.extend((s, 1) for s in opening)
            position = target_position
        else:
            position = self.store.max_position(target_column_id) + 1
            if position != target_position:
                logger.debug(
                    "Clamped position %s -> %s in board column %s",
                    target_position, position, target_column_id,
                )
        return PositionPlan(board_column_id=target_column_id, position=position, shifts=shifts)

    def plan_delete(self, schedule: Schedule) -> PositionPlan:
        # 삭제된 일정 자신의 position은 건드리지 않음
        closing = self.store.active_in_column(
            schedule.board_column_id, min_position=schedule.position + 1, exclude_id=schedule.id,
        )
        return PositionPlan(shifts=[(s, -1) for s in closing])

    @staticmethod
    def apply(schedule: Schedule, plan: PositionPlan) -> None:
        """
        형제들을 먼저 밀고(shift) 대상 일정을 나중에 놓는다(place).
        커밋 시점에는 같은 position을 가진 활성 일정이 둘이 될 수 없음.
        """

        for sibling, delta in plan.shifts:
            sibling.position += delta
        if plan.board_column_id is not None:
            schedule.board_column_id = plan.board_column_id
        if plan.position is not None:
            schedule.position = plan.position
