"""관심사 임베딩 기반 명소 후보 검색(RAG) 서비스."""

from __future__ import annotations

import random
from typing import Any, Sequence

from app.core.logger import get_logger
from app.core.similarity import DEFAULT_TOP_K, rank_by_similarity
from app.schemas.trip import SiteCandidate
from app.services.data_store import DataStoreProtocol

logger = get_logger(__name__)

FALLBACK_QUERY_LIMIT = 10
SYNTHETIC_SCORE_MIN = 0.5
SYNTHETIC_SCORE_MAX = 1.0


def _with_synthetic_scores(documents: list[dict[str, Any]], rng: random.Random) -> list[SiteCandidate]:
    """의미 기반이 아닌 합성 점수(0.5~1.0)를 부여합니다."""
    return [
        SiteCandidate.from_document(document, similarity_score=rng.uniform(SYNTHETIC_SCORE_MIN, SYNTHETIC_SCORE_MAX))
        for document in documents
    ]


def _has_dimension(document: dict[str, Any], expected_dimension: int) -> bool:
    embedding = document.get("embedding")
    if not isinstance(embedding, (list, tuple)) or len(embedding) != expected_dimension:
        return False
    return all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in embedding)


async def retrieve_site_candidates(
    data_store: DataStoreProtocol,
    user_embedding: Sequence[float],
    *,
    city: str | None = None,
    max_cost: float | None = None,
    max_age: int | None = None,
    limit: int = DEFAULT_TOP_K,
    rng: random.Random | None = None,
) -> list[SiteCandidate]:
    """도시/예산/연령 조건으로 명소 후보를 검색하고 유사도순으로 반환합니다.

    단계별로 결과가 없을 때만 다음 단계로 내려갑니다.
    1. 임베딩 보유 + 도시 + 예산 + 연령 조건 조회 후 코사인 유사도 랭킹
    2. 도시 조건만으로 최대 10건 조회, 합성 점수 부여
    3. 1단계 결과의 임베딩 차원이 모두 맞지 않으면 합성 점수 부여

    저장소 오류는 빈 목록으로 변환하며 호출 측에 전파하지 않습니다.
    """
    score_rng = rng or random.Random()
    try:
        documents = await data_store.find_sites(
            city=city,
            max_cost=max_cost,
            max_age=max_age,
            require_embedding=True,
        )
        logger.info(
            "Site retrieval: tier=filtered city=%s max_cost=%s max_age=%s candidate_count=%d",
            city or "any",
            max_cost,
            max_age,
            len(documents),
        )

        if not documents:
            fallback_documents = await data_store.find_sites_by_city(city, FALLBACK_QUERY_LIMIT)
            logger.info(
                "Site retrieval: tier=city_only city=%s candidate_count=%d synthetic_scores=true",
                city or "any",
                len(fallback_documents),
            )
            return _with_synthetic_scores(fallback_documents[:limit], score_rng)

        expected_dimension = len(user_embedding)
        valid_documents = [document for document in documents if _has_dimension(document, expected_dimension)]
        invalid_count = len(documents) - len(valid_documents)
        if invalid_count:
            logger.warning(
                "Site retrieval skipped malformed embeddings: invalid=%d expected_dimension=%d",
                invalid_count,
                expected_dimension,
            )

        if not valid_documents:
            logger.info("Site retrieval: tier=malformed_embeddings synthetic_scores=true")
            return _with_synthetic_scores(documents[:limit], score_rng)

        ranked = rank_by_similarity(
            valid_documents,
            [document["embedding"] for document in valid_documents],
            user_embedding,
            top_k=limit,
        )
        return [SiteCandidate.from_document(document, similarity_score=score) for document, score in ranked]

    except Exception as exc:
        logger.warning("Site retrieval failed: city=%s error=%s", city, exc)
        return []
