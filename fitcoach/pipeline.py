"""
Main Coach Pipeline for routing fitness-coach messages.

This module implements the CoachPipeline class which coordinates all components
of the message router. It owns the response cache, knowledge store, provider
registry and analytics counters for the lifetime of the host process and
exposes process_message as its single hot-path operation.

The routing path is linear:
1. Empty input short-circuits to the local fallback
2. Fresh cached responses are returned as cache hits
3. The message is classified
4. Safety messages are answered from safety knowledge or the safety template
5. Locally handleable messages are scored against the knowledge store
6. Everything else goes to the first available external provider, or to the
   local fallback when none is available or the call fails

process_message never raises: unexpected failures are converted to the error
fallback (or the safety template for safety messages). The only suspension
point is the provider call, so cancelling the caller cancels that call.
"""

import logging
import re
import time
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Union

from .analytics import AnalyticsCounter
from .classifier import MessageClassifier, contains_safety_keyword, require_valid_input, validate_input
from .config import SystemConfig
from .fallbacks import (
    error_fallback_response, local_fallback_response, safety_protocol_response
)
from .knowledge_io import export_knowledge, import_knowledge
from .knowledge_store import KnowledgeStore
from .models import (
    AnalyticsSnapshot, Category, CoachResponse, KnowledgeEntry, KnowledgeMatch,
    MessageAnalysis, ProcessOptions, ResponseMetadata, ResponseSource
)
from .provider_client import ProviderClient, ProviderError
from .provider_registry import ProviderRegistry
from .response_cache import ResponseCache


logger = logging.getLogger(__name__)


LOCAL_CONFIDENCE_THRESHOLD = 0.7
AI_API_CONFIDENCE = 0.9

LOCAL_INTENTS = {
    Category.EXERCISE,
    Category.NUTRITION,
    Category.MOTIVATION,
    Category.PLANNING,
}

LOCAL_QUESTION_PATTERNS = [
    re.compile(r"how many (sets|reps)", re.IGNORECASE),
    re.compile(r"what (exercises?|muscles?)", re.IGNORECASE),
    re.compile(r"how (much|often|long)", re.IGNORECASE),
    re.compile(r"(best|good) (exercise|food|protein)", re.IGNORECASE),
]


class CoachPipeline:
    """
    Main pipeline orchestrating message routing for the fitness coach.

    The pipeline coordinates:
    - Response caching (normalized message text, 1h TTL, bounded size)
    - Intent classification
    - Local knowledge scoring, with a dedicated safety path
    - External provider selection, quota charging and calls
    - Outcome analytics

    One instance is constructed at startup and shared by all request
    handlers; every collaborator can be injected for tests.
    """

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        *,
        knowledge_store: Optional[KnowledgeStore] = None,
        cache: Optional[ResponseCache] = None,
        registry: Optional[ProviderRegistry] = None,
        provider_client: Optional[ProviderClient] = None,
        classifier: Optional[MessageClassifier] = None,
        analytics: Optional[AnalyticsCounter] = None
    ):
        """
        Initialize the Coach Pipeline with all components.

        Args:
            config: System configuration; defaults to local-only settings.
            knowledge_store: Knowledge store; defaults to the built-in table.
            cache: Response cache; sized from config by default.
            registry: Provider registry; built from config by default.
            provider_client: Provider client; built from config by default.
            classifier: Message classifier.
            analytics: Analytics counters.
        """
        self.config = config if config is not None else SystemConfig()

        logger.info("Initializing Coach Pipeline components...")

        self.classifier = classifier if classifier is not None else MessageClassifier()
        self.knowledge_store = knowledge_store if knowledge_store is not None else KnowledgeStore()
        self.cache = cache if cache is not None else ResponseCache(
            max_size=self.config.cache.max_size,
            ttl_seconds=self.config.cache.ttl_seconds
        )
        self.registry = registry if registry is not None else ProviderRegistry(
            [settings.to_provider_config() for settings in self.config.providers]
        )
        self.provider_client = provider_client if provider_client is not None else ProviderClient(
            max_tokens=self.config.max_tokens
        )
        self.analytics = analytics if analytics is not None else AnalyticsCounter()

        logger.info("Coach Pipeline initialized successfully")

    async def process_message(
        self,
        message: str,
        user_id: str = "default",
        options: Optional[ProcessOptions] = None
    ) -> CoachResponse:
        """
        Route one user message to a response.

        Args:
            message: Raw user message.
            user_id: Caller identifier, forwarded to providers.
            options: Per-call routing options.

        Returns:
            CoachResponse: Always a well-formed response, never raises.
        """
        options = options or ProcessOptions()
        start_time = time.perf_counter()
        self.analytics.record_request()

        try:
            response = await self._route(message, user_id, options)
        except Exception as e:
            logger.error(f"Failed to process message: {e}", exc_info=True)
            self.analytics.record_error()
            if contains_safety_keyword(message if isinstance(message, str) else None):
                response = safety_protocol_response()
            else:
                response = error_fallback_response(error_code=type(e).__name__)

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        response = replace(
            response,
            metadata=replace(response.metadata, processing_time_ms=elapsed_ms)
        )

        logger.info(
            f"Message processed: source={response.source.value}, "
            f"confidence={response.confidence:.2f}, {elapsed_ms}ms"
        )
        return response

    async def _route(
        self,
        message: str,
        user_id: str,
        options: ProcessOptions
    ) -> CoachResponse:
        """
        Run the routing state machine.

        Each branch records exactly one outcome counter as its last step, so
        an exception escaping this method leaves no outcome recorded.
        """
        validation = validate_input(message)

        if validation.reason == "empty_input":
            logger.debug("Empty input, using local fallback")
            self.analytics.record_fallback()
            return local_fallback_response(error_code="empty_input", confidence=0.0)

        if not options.bypass_cache:
            cached = self.cache.get(message)
            if cached is not None:
                logger.debug(f"Cache hit: {message[:50]}...")
                self.analytics.record_cache_hit()
                return replace(
                    cached,
                    source=ResponseSource.CACHE,
                    from_cache=True,
                    metadata=ResponseMetadata(error_code=cached.metadata.error_code)
                )

        analysis = self.classifier.classify(message)

        if analysis.is_safety:
            response = self._safety_response(analysis)
            if validation.is_valid:
                self.cache.put(message, response)
            self.analytics.record_local_hit()
            return response

        if not validation.is_valid:
            logger.debug(f"Invalid input ({validation.reason}), using local fallback")
            self.analytics.record_fallback()
            return local_fallback_response(error_code=validation.reason)

        if not options.force_external and self._is_locally_handleable(analysis):
            match = self.knowledge_store.score(analysis)
            if match is not None and match.confidence > LOCAL_CONFIDENCE_THRESHOLD:
                logger.debug(
                    f"Routing to local knowledge: category={match.entry.category.value}, "
                    f"confidence={match.confidence:.2f}"
                )
                response = self._knowledge_response(match)
                self.cache.put(message, response)
                self.analytics.record_local_hit()
                return response

        response = await self._external_response(analysis, user_id)
        self.cache.put(message, response)
        if response.source == ResponseSource.AI_API:
            self.analytics.record_api_hit()
        else:
            self.analytics.record_fallback()
        return response

    def _is_locally_handleable(self, analysis: MessageAnalysis) -> bool:
        """Decide whether the knowledge store should be consulted."""
        if analysis.is_safety:
            return True
        if (
            analysis.confidence >= LOCAL_CONFIDENCE_THRESHOLD
            and analysis.intent in LOCAL_INTENTS
        ):
            return True
        return any(
            pattern.search(analysis.original_message)
            for pattern in LOCAL_QUESTION_PATTERNS
        )

    def _safety_response(self, analysis: MessageAnalysis) -> CoachResponse:
        """
        Answer a safety message from safety knowledge only.

        Falls back to the built-in safety template; never degraded and never
        sent to a provider.
        """
        match = self.knowledge_store.score(analysis, categories={Category.SAFETY})
        if match is None:
            logger.debug("No safety entry accepted, using safety template")
            return safety_protocol_response()

        logger.debug(f"Safety entry matched: confidence={match.confidence:.2f}")
        return self._knowledge_response(match)

    def _knowledge_response(self, match: KnowledgeMatch) -> CoachResponse:
        source = (
            ResponseSource.SAFETY_PROTOCOL
            if match.entry.category == Category.SAFETY
            else ResponseSource.LOCAL_KNOWLEDGE
        )
        return CoachResponse(
            content=match.entry.response,
            source=source,
            confidence=match.confidence
        )

    async def _external_response(
        self,
        analysis: MessageAnalysis,
        user_id: str
    ) -> CoachResponse:
        """
        Ask the first available provider, or fall back locally.

        Usage is charged before the call, so failed calls still count.

        Args:
            analysis: Classified message.
            user_id: Caller identifier.

        Returns:
            CoachResponse: ai_api on success, local_fallback otherwise.
        """
        provider = self.registry.select_provider()
        if provider is None:
            logger.debug("No provider available, using local fallback")
            return local_fallback_response(error_code="no_provider")

        prompt = self.provider_client.create_prompt(analysis.intent, analysis.original_message)
        self.registry.charge(provider)

        call_start = time.perf_counter()
        try:
            content = await self.provider_client.complete(provider, prompt, user_id)
        except ProviderError as e:
            logger.warning(f"Provider {provider.name} failed: {e.error_code} ({e})")
            self.registry.record_failure(provider, e.error_code)
            return local_fallback_response(error_code=e.error_code)

        elapsed_ms = (time.perf_counter() - call_start) * 1000
        self.registry.record_success(provider, elapsed_ms)
        logger.debug(f"Provider {provider.name} answered in {elapsed_ms:.0f}ms")

        return CoachResponse(
            content=content,
            source=ResponseSource.AI_API,
            confidence=AI_API_CONFIDENCE,
            provider=provider.name
        )

    # Secondary and administrative operations

    def get_analytics(self) -> AnalyticsSnapshot:
        """
        Get request analytics.

        Returns:
            AnalyticsSnapshot: Counters, cache size and derived rates.
        """
        return self.analytics.snapshot(cache_size=self.cache.size())

    def get_provider_status(self) -> dict:
        return self.registry.status()

    def add_knowledge_entry(
        self,
        patterns: List[str],
        response: str,
        category: Union[Category, str],
        confidence: float
    ) -> KnowledgeEntry:
        """
        Add a knowledge entry at runtime.

        Patterns go through the same input validation as chat messages.

        Raises:
            InputError: If a pattern is empty or malformed.
            ValueError: If the entry is invalid.
        """
        patterns = [require_valid_input(pattern) for pattern in patterns or []]
        return self.knowledge_store.add_entry(patterns, response, category, confidence)

    def remove_knowledge_entry(self, entry_id: str) -> bool:
        return self.knowledge_store.remove_entry(entry_id)

    def clear_cache(self) -> None:
        """Drop all cached responses."""
        self.cache.clear()
        logger.info("Response cache cleared")

    def export_knowledge(self, path: Union[str, Path]) -> int:
        return export_knowledge(self.knowledge_store, path)

    def import_knowledge(self, path: Union[str, Path], replace: bool = False) -> int:
        return import_knowledge(self.knowledge_store, path, replace=replace)

    async def aclose(self) -> None:
        """Release the provider client's HTTP resources."""
        await self.provider_client.aclose()
        logger.info("Coach Pipeline closed")


def create_pipeline(config: SystemConfig) -> CoachPipeline:
    """
    Factory function to create and initialize a Coach Pipeline.

    Args:
        config: System configuration.

    Returns:
        CoachPipeline: Initialized pipeline instance.
    """
    return CoachPipeline(config)
