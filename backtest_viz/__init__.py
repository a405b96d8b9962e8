"""
=============================================================================
백테스트 결과 시각화 데이터 가공 (Backtest Viz)
=============================================================================

[ 시스템 전체 구조 ]

    run_viewer.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드
         ├── utils/logger.py        ← 로깅
         │
         ├── data/loader.py         ← 실행(run) 디렉토리에서 JSON/CSV 로드
         │
         └── processing/processor.py  ← 타임라인 분류/변환 (핵심)
               │
               ├── processing/classifier.py   ← 행 분류 (봉/시그널/지표/포트폴리오 지표)
               ├── processing/builders.py     ← 시리즈 누적기 4종
               ├── processing/drawdown.py     ← 고점 대비 낙폭 계산
               ├── processing/performance.py  ← 성과 요약 수치 변환
               └── processing/reports.py      ← 월별 수익률 / 상위 낙폭 구간


[ 핵심 데이터 타입 (core/) ]

    core/timeline.py  → RawTimelineRow (입력), OHLCVBar / Signal / EquityPoint /
                        IndicatorPoint / MetricPoint / DrawdownPoint (출력),
                        ProcessedBacktestData (최종 묶음)
    core/errors.py    → BacktestDataError 계열 예외


[ 데이터 흐름 ]

    1. loader가 manifest / metadata / performance / chart_data를 읽는다
    2. chart_data의 각 행을 classifier가 한 번씩 분류 (파일 순서 유지)
    3. 분류 결과(facet)를 builder들이 누적
    4. 시그널 중복 제거, 지표 그룹 확정
    5. 완성된 equity 시리즈로 drawdown 계산
    6. performance.json은 PerformanceMetrics로 수치 변환
"""
