"""
결과 캐시

환율/분석 결과용 소형 인메모리 캐시.
- TTL 만료: 조회 시점에 만료된 항목 제거
- 용량 제한: 가득 차면 가장 오래된 항목(저장 시각 기준) 제거

전역 싱글턴이 아니라 명시적으로 생성해 주입하는 컴포넌트.
Web 프로세스는 web.dependencies에서 1개 인스턴스를 생성해 공유.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from core.constants import Defaults

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """캐시 항목"""

    key: str
    value: Any
    stored_at: float


class ResultCache:
    """TTL + 용량 제한 캐시

    Args:
        ttl_seconds: 항목 유효 시간 (초)
        max_size: 최대 항목 수
        clock: 현재 시각 함수 (테스트에서 교체)

    사용 예시:
    ```python
    cache = ResultCache(ttl_seconds=300, max_size=50)
    key = cache.make_key({"company_id": "c1", "report": "cash-flow"})

    cached = cache.get(key)
    if cached is None:
        cached = compute()
        cache.set(key, cached)
    ```
    """

    def __init__(
        self,
        ttl_seconds: float = Defaults.CACHE_TTL_SECONDS,
        max_size: int = Defaults.CACHE_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size는 1 이상이어야 합니다")
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(params: dict[str, Any]) -> str:
        """파라미터 dict로 결정적 키 생성 (키 정렬)"""
        return json.dumps(params, sort_keys=True, default=str)

    def get(self, key: str) -> Any | None:
        """항목 조회 (없거나 만료되면 None)"""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() - entry.stored_at > self.ttl_seconds:
            del self._entries[key]
            self._misses += 1
            return None

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """항목 저장 (가득 차면 가장 오래된 항목 제거)"""
        if key not in self._entries and len(self._entries) >= self.max_size:
            oldest_key = self._oldest_key()
            if oldest_key is not None:
                del self._entries[oldest_key]
                logger.debug(f"Cache eviction: {oldest_key}")

        self._entries[key] = CacheEntry(key=key, value=value, stored_at=self._clock())

    def invalidate(self, key: str) -> bool:
        """특정 항목 제거

        Returns:
            제거 여부
        """
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """전체 초기화"""
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> dict[str, Any]:
        """캐시 통계"""
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
            "hits": self._hits,
            "misses": self._misses,
        }

    def _oldest_key(self) -> str | None:
        if not self._entries:
            return None
        return min(self._entries.values(), key=lambda e: e.stored_at).key

    def __len__(self) -> int:
        return len(self._entries)
