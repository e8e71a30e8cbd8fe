"""
services/grade_stats.py

성적 집계의 공용 기본 연산
- compute_stats : 점수 목록 → 미완료/합격/불합격 수 + 평균(소수 첫째 자리)
- compute_ranks : (id, 평균) 목록 → 동점 공유 석차

반올림 규칙은 기존 프론트/리포트와 숫자가 1:1로 맞아야 하므로
부동소수점 값을 Decimal로 정확히 옮긴 뒤 반올림합니다.
"""

import math
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP, localcontext
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from schemas.grade_reports import RankedEntity, Stats
from schemas.grades import PASS_MARK


class Graded(Protocol):
    """compute_stats가 요구하는 최소 인터페이스: grade 속성 하나"""
    grade: Optional[float]


RankInput = Union[Tuple[str, float], Mapping[str, Any]]

# float 최댓값(약 1.8e308)의 정수부를 모두 담는 자릿수
_DECIMAL_PREC = 400


# ==========================================================
# [반올림]
# ==========================================================
def round1(value: float) -> float:
    """소수 첫째 자리 반올림 (0.05 → 0.1, 절댓값 기준 half-up)"""
    if value is None or not math.isfinite(value):
        return value
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PREC
        return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def round0(value: float) -> Union[int, float]:
    """정수 반올림. .5는 +무한대 쪽으로 (82.5 → 83, -2.5 → -2), inf는 그대로"""
    if not math.isfinite(value):
        return value
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PREC
        return int((Decimal(value) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def is_valid_grade(grade: Any) -> bool:
    """숫자이고 NaN이 아니면 유효한 점수"""
    if isinstance(grade, bool) or not isinstance(grade, (int, float)):
        return False
    return not math.isnan(grade)


def _grade_of(item: Any) -> Any:
    if isinstance(item, Mapping):
        return item.get("grade")
    return getattr(item, "grade", None)


# ==========================================================
# [통계]
# ==========================================================
def compute_stats(items: Sequence[Graded]) -> Stats:
    valid = [g for g in (_grade_of(item) for item in items) if is_valid_grade(g)]
    passes = sum(1 for g in valid if g >= PASS_MARK)
    average = round1(sum(valid) / len(valid)) if valid else 0
    return Stats(
        incompletes=len(items) - len(valid),
        passes=passes,
        fails=len(valid) - passes,
        average=average,
        total_students=len(items),
    )


# ==========================================================
# [석차]
# ==========================================================
def _rank_pair(entry: RankInput) -> Tuple[str, float]:
    if isinstance(entry, Mapping):
        return entry["id"], entry["average"]
    entity_id, average = entry
    return entity_id, average


def compute_ranks(entries: Iterable[RankInput]) -> List[RankedEntity]:
    """
    평균(소수 첫째 자리로 반올림한 값) 내림차순으로 석차를 매긴다.
    - 같은 평균은 같은 석차, 평균이 떨어지는 지점에서 석차 = 순번(index+1)
      예) 90, 90, 85 → 1, 1, 3
    - sorted는 안정 정렬이므로 동점자는 입력 순서를 유지
    - 결과는 정렬된 순서의 새 목록 (입력은 건드리지 않음)
    """
    pairs = [_rank_pair(entry) for entry in entries]
    if not pairs:
        return []

    ordered = sorted(
        ((entity_id, average, round1(average)) for entity_id, average in pairs),
        key=lambda row: row[2],
        reverse=True,
    )

    ranked = []
    current_rank = 1
    for i, (entity_id, average, rounded) in enumerate(ordered):
        if i > 0 and rounded < ordered[i - 1][2]:
            current_rank = i + 1
        ranked.append(RankedEntity(
            id=entity_id,
            average=average,
            rounded_average=rounded,
            rank=current_rank,
        ))
    return ranked


def rank_lookup(entries: Iterable[RankInput]) -> dict:
    """id → 석차 dict (집계기에서 학생별로 석차를 붙일 때 사용)"""
    return {r.id: r.rank for r in compute_ranks(entries)}
