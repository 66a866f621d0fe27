"""
Core data models and enums for the fitness coach message router.

This module defines the data structures shared across the routing engine,
including knowledge categories, response sources, and dataclasses for
knowledge entries, message analysis, cached responses, provider state and
analytics snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid


# Enums

class Category(Enum):
    """Knowledge categories, also used as message intents."""
    SAFETY = "safety"
    EXERCISE = "exercise"
    NUTRITION = "nutrition"
    MOTIVATION = "motivation"
    PLANNING = "planning"
    GENERAL = "general"


class Urgency(Enum):
    """Urgency of a classified message."""
    NORMAL = "normal"
    HIGH = "high"      # Safety messages only


class ResponseSource(Enum):
    """Where a response came from."""
    LOCAL_KNOWLEDGE = "local_knowledge"
    CACHE = "cache"
    AI_API = "ai_api"
    LOCAL_FALLBACK = "local_fallback"
    ERROR = "error"
    SAFETY_PROTOCOL = "safety_protocol"


class ApiFormat(Enum):
    """Request dialects understood by the provider client."""
    OPENAI = "openai"   # OpenAI-compatible /chat/completions
    GEMINI = "gemini"   # Google generateContent


# Knowledge Models

@dataclass
class KnowledgeEntry:
    """A single rule-based knowledge entry."""
    patterns: List[str]
    response: str
    category: Category
    base_confidence: float  # (0.0, 1.0]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    use_count: int = 0
    last_used_at: Optional[datetime] = None

    def __post_init__(self):
        """Normalize patterns and coerce string categories."""
        self.patterns = [p.lower().strip() for p in self.patterns]
        if isinstance(self.category, str):
            self.category = Category(self.category)
        if isinstance(self.last_used_at, str):
            self.last_used_at = datetime.fromisoformat(self.last_used_at)


@dataclass
class KnowledgeMatch:
    """An accepted knowledge-store match."""
    entry: KnowledgeEntry
    score: float

    @property
    def confidence(self) -> float:
        return min(self.score, 1.0)


@dataclass
class MessageAnalysis:
    """Derived classification of a raw user message (never persisted)."""
    original_message: str
    intent: Category
    topics: List[str] = field(default_factory=list)
    urgency: Urgency = Urgency.NORMAL
    confidence: float = 0.0
    needs_external: bool = False

    @property
    def is_safety(self) -> bool:
        return self.intent == Category.SAFETY


# Response Models

@dataclass
class ProcessOptions:
    """Per-call routing options."""
    bypass_cache: bool = False
    force_external: bool = False


@dataclass
class ResponseMetadata:
    """Optional diagnostics attached to a response."""
    processing_time_ms: Optional[int] = None
    error_code: Optional[str] = None


@dataclass
class CoachResponse:
    """The total result of processing one message."""
    content: str
    source: ResponseSource
    confidence: float
    provider: Optional[str] = None
    from_cache: bool = False
    metadata: ResponseMetadata = field(default_factory=ResponseMetadata)

    def to_dict(self) -> Dict[str, Any]:
        """Render using the field names the chat UI expects."""
        data: Dict[str, Any] = {
            "content": self.content,
            "source": self.source.value,
            "confidence": self.confidence,
            "fromCache": self.from_cache,
        }
        if self.provider:
            data["provider"] = self.provider
        metadata = {}
        if self.metadata.processing_time_ms is not None:
            metadata["processingTimeMs"] = self.metadata.processing_time_ms
        if self.metadata.error_code:
            metadata["errorCode"] = self.metadata.error_code
        if metadata:
            data["metadata"] = metadata
        return data


@dataclass
class CacheEntry:
    """A cached response plus its creation time (epoch seconds)."""
    response: CoachResponse
    created_at: float


# Provider Models

@dataclass
class ProviderConfig:
    """Runtime state of one external provider."""
    name: str
    base_url: str
    model: str
    api_key: str
    quota_per_day: int
    api_format: ApiFormat = ApiFormat.OPENAI
    timeout_seconds: float = 30.0
    current_usage: int = 0
    last_reset_at: datetime = field(default_factory=datetime.now)
    error_count: int = 0
    last_error: Optional[str] = None
    avg_response_time_ms: float = 0.0
    successful_calls: int = 0

    @property
    def api_key_present(self) -> bool:
        """Placeholder keys such as ``your_key_here`` do not count."""
        key = (self.api_key or "").strip()
        return bool(key) and not key.lower().startswith("your_")


# Analytics Models

@dataclass
class AnalyticsSnapshot:
    """Read-only projection of the running request counters."""
    total_requests: int
    cache_hits: int
    local_hits: int
    api_hits: int
    fallback_responses: int
    errors: int
    cache_size: int = 0

    @staticmethod
    def _rate(count: int, total: int) -> float:
        return count / max(total, 1)

    @property
    def local_knowledge_rate(self) -> float:
        return self._rate(self.local_hits, self.total_requests)

    @property
    def cache_hit_rate(self) -> float:
        return self._rate(self.cache_hits, self.total_requests)

    @property
    def api_response_rate(self) -> float:
        return self._rate(self.api_hits, self.total_requests)

    @property
    def fallback_rate(self) -> float:
        return self._rate(self.fallback_responses, self.total_requests)

    @property
    def error_rate(self) -> float:
        return self._rate(self.errors, self.total_requests)

    def to_dict(self) -> Dict[str, Any]:
        """Render rates as percentage strings, e.g. ``"12.5%"``."""
        def pct(rate: float) -> str:
            return f"{rate * 100:.1f}%"

        return {
            "totalRequests": self.total_requests,
            "cacheSize": self.cache_size,
            "localKnowledgeRate": pct(self.local_knowledge_rate),
            "cacheHitRate": pct(self.cache_hit_rate),
            "apiResponseRate": pct(self.api_response_rate),
            "fallbackRate": pct(self.fallback_rate),
            "errorRate": pct(self.error_rate),
        }


# Utility Functions

def create_knowledge_entry(
    patterns: List[str],
    response: str,
    category: Category,
    confidence: float
) -> KnowledgeEntry:
    """Create a validated KnowledgeEntry.

    Raises:
        ValueError: If patterns are empty or confidence is outside (0, 1].
    """
    cleaned = [p for p in (patterns or []) if p and p.strip()]
    if not cleaned:
        raise ValueError("Knowledge entry needs at least one non-blank pattern")
    if not 0.0 < confidence <= 1.0:
        raise ValueError(f"Confidence must be in (0, 1], got: {confidence}")
    if isinstance(category, str):
        category = Category(category)
    return KnowledgeEntry(
        patterns=cleaned,
        response=response,
        category=category,
        base_confidence=confidence
    )
