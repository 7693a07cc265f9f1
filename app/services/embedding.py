"""`OpenAI` 관심사 임베딩 서비스."""

from functools import lru_cache

from openai import OpenAI

from app.core.config import get_settings
from app.core.logger import get_logger
from app.core.timeout_policy import get_timeout_policy

logger = get_logger(__name__)

RETRIEVAL_PREFIX = "Represent this sentence for searching relevant passages: "


class EmbeddingService:
    """`OpenAI` API를 사용하여 관심사 텍스트의 임베딩 벡터를 생성하는 서비스.

    `text-embedding-3-small`의 `dimensions` 옵션으로 명소 컬렉션과 같은 차원
    (기본 384)의 벡터를 생성합니다.
    """

    def __init__(self, model: str | None = None, dimensions: int | None = None):
        """`EmbeddingService`를 초기화합니다."""
        settings = get_settings()
        api_key = settings.OPENAI_API_KEY
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY가 설정되지 않았습니다.")

        self.client = OpenAI(api_key=api_key, timeout=get_timeout_policy(settings).external_api_timeout_seconds)
        self.model = model or settings.EMBEDDING_MODEL_NAME
        self.dimensions = dimensions or settings.EMBEDDING_DIMENSION

    def get_embedding(self, text: str) -> list[float] | None:
        """주어진 관심사 텍스트에 대한 임베딩 벡터를 반환합니다.

        Args:
            text: 임베딩을 생성할 텍스트. 검색용 접두어가 없으면 한 번만 붙입니다.

        Returns:
            생성된 임베딩 벡터. 빈 입력이거나 실패 시 None.
        """
        try:
            if not text or not text.strip():
                return None

            clean_text = text.replace("\n", " ").strip()
            if not clean_text.startswith(RETRIEVAL_PREFIX):
                clean_text = RETRIEVAL_PREFIX + clean_text

            response = self.client.embeddings.create(
                input=clean_text,
                model=self.model,
                dimensions=self.dimensions,
            )
            return response.data[0].embedding

        except Exception as e:
            logger.error("Embedding failed: %s", e)
            return None


@lru_cache
def get_embedding_service() -> EmbeddingService:
    """프로세스 전역 `EmbeddingService`를 반환합니다."""
    return EmbeddingService()
