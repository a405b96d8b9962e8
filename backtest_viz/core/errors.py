"""
예외 정의.

[ 역할 ]
    데이터 가공 파이프라인에서 발생하는 오류를 한 계층으로 묶는다.
    모든 예외는 호출자에게 그대로 전달된다 (로그 후 계속 진행하지 않음).
    봉이 조용히 빠진 차트보다 오류 화면이 낫기 때문.

[ 호출하는 곳 ]
    - processing/classifier.py  → MalformedRowError, AmbiguousClassificationError
    - processing/performance.py → PerformanceFormatError
    - data/loader.py            → RunLoadError
    - run_viewer.py에서 BacktestDataError를 잡아 종료 코드 1로 종료
"""


class BacktestDataError(ValueError):
    """가공 파이프라인 예외의 공통 부모."""


class MalformedRowError(BacktestDataError):
    """타임스탬프/숫자 필드를 파싱할 수 없는 행. 전체 변환을 중단시킨다."""

    def __init__(self, message: str, row_index: int | None = None):
        if row_index is not None:
            message = f"row {row_index}: {message}"
        super().__init__(message)
        self.row_index = row_index


class AmbiguousClassificationError(BacktestDataError):
    """상호배타 카테고리(봉/지표/포트폴리오 지표) 중 둘 이상에 해당하는 행."""


class PerformanceFormatError(BacktestDataError):
    """성과 요약의 필드가 없거나 숫자로 변환할 수 없음."""

    def __init__(self, field_name: str, value: object):
        super().__init__(f"performance field '{field_name}' is not numeric: {value!r}")
        self.field_name = field_name
        self.value = value


class RunLoadError(BacktestDataError):
    """실행(run) 디렉토리의 파일을 읽거나 해석할 수 없음."""
