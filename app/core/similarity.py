"""관심사 임베딩 기반 코사인 유사도 랭킹."""

from __future__ import annotations

import math
from typing import Sequence, TypeVar

T = TypeVar("T")

DEFAULT_TOP_K = 6


def cosine_similarity(u: Sequence[float], v: Sequence[float]) -> float:
    """두 벡터의 코사인 유사도를 반환합니다. 어느 한쪽의 크기가 0이면 0입니다."""
    dot = sum(a * b for a, b in zip(u, v))
    magnitude_u = math.sqrt(sum(a * a for a in u))
    magnitude_v = math.sqrt(sum(b * b for b in v))
    if not magnitude_u or not magnitude_v:
        return 0.0
    return max(-1.0, min(1.0, dot / (magnitude_u * magnitude_v)))


def rank_by_similarity(
    candidates: Sequence[T],
    vectors: Sequence[Sequence[float]],
    query: Sequence[float],
    top_k: int = DEFAULT_TOP_K,
) -> list[tuple[T, float]]:
    """후보를 유사도 내림차순으로 정렬해 상위 `top_k`개를 (후보, 점수)로 반환합니다.

    동점은 입력 순서를 유지합니다(안정 정렬). 점수는 소수점 둘째 자리로 반올림합니다.
    """
    scored = [(candidate, cosine_similarity(query, vector)) for candidate, vector in zip(candidates, vectors)]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [(candidate, round(score, 2)) for candidate, score in scored[: max(0, top_k)]]
