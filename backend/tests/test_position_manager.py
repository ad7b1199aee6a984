"""
보드 컬럼 순서(position) 테스트: 생성/컬럼 내 이동/컬럼 간 이동/삭제
"""
import random

import pytest

from services.errors import InvalidArgumentError
from services.position_manager import PositionManager, PositionPlan

from conftest import ACTOR, fill_column, layout


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 생성
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_create_appends_to_column(service):
    fill_column(service, 10, ["S1", "S2", "S3"])
    fourth = service.create(10, 1, ACTOR, {"title": "S4"})
    assert fourth.position == 4
    assert layout(service, 10) == [("S1", 1), ("S2", 2), ("S3", 3), ("S4", 4)]


def test_create_in_other_column_starts_at_one(service):
    fill_column(service, 10, ["S1", "S2"])
    other = service.create(20, 1, ACTOR, {"title": "T1"})
    assert other.position == 1


def test_create_after_delete_reuses_dense_range(service):
    s1, s2, s3 = fill_column(service, 10, ["S1", "S2", "S3"])
    service.delete(s2.id, ACTOR)
    s4 = service.create(10, 1, ACTOR, {"title": "S4"})
    assert s4.position == 3
    assert layout(service, 10) == [("S1", 1), ("S3", 2), ("S4", 3)]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 컬럼 내 이동
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_move_up_within_column(service):
    s1, s2, s3 = fill_column(service, 10, ["S1", "S2", "S3"])
    service.move(s3.id, ACTOR, None, 1)
    assert layout(service, 10) == [("S3", 1), ("S1", 2), ("S2", 3)]


def test_move_down_within_column(service):
    s1, s2, s3, s4 = fill_column(service, 10, ["S1", "S2", "S3", "S4"])
    service.move(s1.id, ACTOR, 10, 3)
    assert layout(service, 10) == [("S2", 1), ("S3", 2), ("S1", 3), ("S4", 4)]


def test_move_to_same_position_is_noop(service, store):
    s1, s2, s3 = fill_column(service, 10, ["S1", "S2", "S3"])
    before_logs = len(service.list_logs(s2.id))

    plan = PositionManager(store).plan_move_within(s2, 2)
    assert plan.is_noop
    assert plan.shifts == []

    moved = service.move(s2.id, ACTOR, 10, 2)
    assert moved.position == 2
    assert len(service.list_logs(s2.id)) == before_logs
    assert layout(service, 10) == [("S1", 1), ("S2", 2), ("S3", 3)]


@pytest.mark.parametrize("position", [0, 4, -1, 100])
def test_move_within_out_of_range_rejected(service, position):
    s1, s2, s3 = fill_column(service, 10, ["S1", "S2", "S3"])
    with pytest.raises(InvalidArgumentError):
        service.move(s1.id, ACTOR, None, position)
    assert layout(service, 10) == [("S1", 1), ("S2", 2), ("S3", 3)]


def test_move_within_ignores_deleted_siblings(service):
    s1, s2, s3, s4 = fill_column(service, 10, ["S1", "S2", "S3", "S4"])
    service.delete(s2.id, ACTOR)
    service.move(s4.id, ACTOR, None, 1)
    assert layout(service, 10) == [("S4", 1), ("S1", 2), ("S3", 3)]
    # 삭제된 일정의 position은 그대로
    assert service.get(s2.id).position == 2


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 컬럼 간 이동
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_move_across_columns_mid_insert(service):
    s1, s2, s3 = fill_column(service, 10, ["S1", "S2", "S3"])
    fill_column(service, 20, ["T1", "T2"])

    moved = service.move(s2.id, ACTOR, 20, 1)

    assert moved.board_column_id == 20
    assert moved.position == 1
    assert layout(service, 10) == [("S1", 1), ("S3", 2)]
    assert layout(service, 20) == [("S2", 1), ("T1", 2), ("T2", 3)]


def test_move_across_columns_past_end_appends(service):
    s1, s2 = fill_column(service, 10, ["S1", "S2"])
    fill_column(service, 20, ["T1"])

    moved = service.move(s1.id, ACTOR, 20, 5)

    assert moved.position == 2
    assert layout(service, 10) == [("S2", 1)]
    assert layout(service, 20) == [("T1", 1), ("S1", 2)]


def test_move_across_to_empty_column_appends(service):
    (s1,) = fill_column(service, 10, ["S1"])
    moved = service.move(s1.id, ACTOR, 30, 3)
    assert moved.board_column_id == 30
    assert moved.position == 1
    assert layout(service, 10) == []


def test_move_across_to_last_slot_inserts_before_tail(service):
    s1, s2 = fill_column(service, 10, ["S1", "S2"])
    fill_column(service, 20, ["T1", "T2"])
    service.move(s1.id, ACTOR, 20, 2)
    assert layout(service, 20) == [("T1", 1), ("S1", 2), ("T2", 3)]


def test_move_across_rejects_non_positive_position(service):
    (s1,) = fill_column(service, 10, ["S1"])
    with pytest.raises(InvalidArgumentError):
        service.move(s1.id, ACTOR, 20, 0)
    assert service.get(s1.id).board_column_id == 10


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 삭제
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_delete_compacts_column(service):
    s1, s2, s3 = fill_column(service, 10, ["S1", "S2", "S3"])
    service.delete(s2.id, ACTOR)

    assert layout(service, 10) == [("S1", 1), ("S3", 2)]
    deleted = service.get(s2.id)
    assert deleted.is_deleted
    assert deleted.deleted_at is not None
    assert deleted.position == 2


def test_delete_last_needs_no_shift(service, store):
    s1, s2 = fill_column(service, 10, ["S1", "S2"])
    plan = PositionManager(store).plan_delete(s2)
    assert plan.shifts == []


def test_apply_shifts_before_placing():
    class Card:
        def __init__(self, position, column=1):
            self.position = position
            self.board_column_id = column

    moved, a, b = Card(3), Card(1), Card(2)
    PositionManager.apply(moved, PositionPlan(position=1, shifts=[(a, 1), (b, 1)]))
    assert (moved.position, a.position, b.position) == (1, 2, 3)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 불변식: 임의의 작업 순서 후에도 활성 position은 1..N
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _assert_dense(service, columns):
    for column_id in columns:
        positions = [s.position for s in service.list_by_column(column_id)]
        assert positions == list(range(1, len(positions) + 1)), (column_id, positions)


def test_invariant_holds_after_random_operations(service):
    rng = random.Random(20241016)
    columns = [1, 2, 3]
    alive = []
    frozen = {}

    for step in range(150):
        op = rng.choice(["create", "create", "move", "move", "delete"])
        if op == "create" or not alive:
            s = service.create(rng.choice(columns), 1, ACTOR, {"title": f"card-{step}"})
            alive.append(s.id)
        elif op == "move":
            sid = rng.choice(alive)
            current = service.get(sid)
            target = rng.choice(columns)
            if target == current.board_column_id:
                n = len(service.list_by_column(target))
                service.move(sid, ACTOR, target, rng.randint(1, n))
            else:
                n = len(service.list_by_column(target))
                service.move(sid, ACTOR, target, rng.randint(1, n + 2))
        else:
            sid = rng.choice(alive)
            frozen[sid] = service.get(sid).position
            service.delete(sid, ACTOR)
            alive.remove(sid)
        _assert_dense(service, columns)

    for sid, position in frozen.items():
        assert service.get(sid).position == position
