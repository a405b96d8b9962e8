"""
설정 관리 모듈.

[ 역할 ]
    config.yaml (또는 .json) 파일을 파싱하여 Config 객체로 변환.
    실행 디렉토리 위치, 가공 옵션, 로깅 설정 등을 통합 관리.

[ 설정 파일 구조 (config.yaml) ]
    viewer:           → ViewerConfig (실행 위치 / 가공 옵션)
    log_level:        → "INFO" / "DEBUG"
    log_dir:          → 로그 디렉토리 경로

[ 호출하는 곳 ]
    - run_viewer.py에서 Config.from_yaml()로 로드
    - process_timeline() 호출 시 config.viewer.dedupe_indicators 전달
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class ViewerConfig:
    """config.yaml의 viewer 섹션에 대응."""
    runs_dir: str = "runs"
    run_id: str = ""                 # 비어 있으면 가장 최근(이름순 마지막) 실행
    dedupe_indicators: bool = False  # 지표 포인트도 같은 초 기준 last-wins 정리
    top_drawdowns: int = 10          # 출력할 낙폭 구간 수


@dataclass
class Config:
    """전체 설정. from_yaml() 또는 from_json()으로 파일에서 로드."""
    viewer: ViewerConfig = field(default_factory=ViewerConfig)
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """YAML 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls._from_dict(data or {})

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        """JSON 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """딕셔너리에서 Config 생성. 모르는 키는 무시."""
        viewer_data = data.get("viewer") or {}
        viewer = ViewerConfig(**{
            k: v for k, v in viewer_data.items()
            if k in ViewerConfig.__dataclass_fields__
        })
        return cls(
            viewer=viewer,
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환."""
        from dataclasses import asdict
        return asdict(self)

    def save_yaml(self, path: str | Path) -> None:
        """YAML 파일로 저장."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True, default_flow_style=False)
