# services/errors.py
# 서비스 계층 예외. 라우터에서 HTTP 상태 코드로 변환됨(main.py 참고)


class ScheduleError(Exception):
    code = "SCHEDULE_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFoundError(ScheduleError):
    # 존재하지 않거나(활성 행이 필요한 작업에서) 이미 삭제된 일정
    code = "NOT_FOUND"


class InvalidArgumentError(ScheduleError):
    # 범위를 벗어난 position, 필수 필드 누락, 파싱할 수 없는 값
    code = "INVALID_ARGUMENT"


class ConflictError(ScheduleError):
    # 동시 수정 충돌(직렬화 실패/교착/잠금 대기 초과). 재시도는 호출자 몫
    code = "CONFLICT"


class StorageError(ScheduleError):
    code = "STORAGE_FAILURE"
