"""
Provider Registry for external AI providers.

This module tracks the configured external providers, applies the daily
usage reset, and selects the first available provider in registration
order. Usage is charged when a call is attempted, before its outcome is
known, so failed calls still count against the daily quota.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from .models import ProviderConfig


logger = logging.getLogger(__name__)


USAGE_RESET_WINDOW = timedelta(hours=24)


class ProviderRegistry:
    """
    Ordered registry of external provider configurations.

    Usage counters and reset timestamps gate selection, so every read and
    write of them happens under the registry lock. Under concurrency a
    provider may be selected by several requests before their charges land,
    overrunning the quota by at most the number of in-flight requests.
    Usage never decreases except through the 24h reset.
    """

    def __init__(
        self,
        providers: Optional[Iterable[ProviderConfig]] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the registry.

        Args:
            providers: Providers in registration (priority) order.
            clock: Time source, injectable for tests.
        """
        self._providers: List[ProviderConfig] = list(providers or [])
        self._clock = clock
        self._lock = threading.Lock()

        logger.info(
            f"ProviderRegistry initialized with {len(self._providers)} providers "
            f"({len(self.available_providers())} available)"
        )

    def register(self, provider: ProviderConfig) -> None:
        """Append a provider at the end of the selection order."""
        with self._lock:
            self._providers.append(provider)

    def select_provider(self) -> Optional[ProviderConfig]:
        """
        Return the first provider that has an API key and remaining quota.

        Returns:
            ProviderConfig, or None when no provider qualifies.
        """
        with self._lock:
            for provider in self._providers:
                if self._is_available(provider):
                    return provider
        return None

    def _is_available(self, provider: ProviderConfig) -> bool:
        """Apply the daily reset if due, then check key and quota. Lock held."""
        if not provider.api_key_present:
            return False

        now = self._clock()
        if now - provider.last_reset_at >= USAGE_RESET_WINDOW:
            logger.info(f"Resetting daily usage for provider {provider.name}")
            provider.current_usage = 0
            provider.last_reset_at = now

        return provider.current_usage < provider.quota_per_day

    def charge(self, provider: ProviderConfig) -> None:
        """Charge one request against a provider's daily quota."""
        with self._lock:
            provider.current_usage += 1

    def record_success(self, provider: ProviderConfig, elapsed_ms: float) -> None:
        """Fold a successful call into the provider's running average latency."""
        with self._lock:
            provider.successful_calls += 1
            n = provider.successful_calls
            provider.avg_response_time_ms += (elapsed_ms - provider.avg_response_time_ms) / n

    def record_failure(self, provider: ProviderConfig, error_code: str) -> None:
        with self._lock:
            provider.error_count += 1
            provider.last_error = error_code

    def get(self, name: str) -> Optional[ProviderConfig]:
        """Look up a provider by name (diagnostics only)."""
        with self._lock:
            return next((p for p in self._providers if p.name == name), None)

    def providers(self) -> List[ProviderConfig]:
        with self._lock:
            return list(self._providers)

    def available_providers(self) -> List[str]:
        """Names of providers that would currently pass selection."""
        with self._lock:
            return [p.name for p in self._providers if self._is_available(p)]

    def status(self) -> Dict[str, object]:
        """
        Summarize provider availability.

        Returns:
            Dictionary with has_external_apis, available_providers and errors
        """
        available = self.available_providers()
        errors = []
        if not self._providers:
            errors.append("No providers configured. Using local knowledge only.")
        elif not available:
            errors.append("No provider has an API key and remaining quota. Using local knowledge only.")

        return {
            'has_external_apis': bool(available),
            'available_providers': available,
            'errors': errors,
            'providers': [
                {
                    'name': p.name,
                    'api_key_present': p.api_key_present,
                    'current_usage': p.current_usage,
                    'quota_per_day': p.quota_per_day,
                    'error_count': p.error_count,
                    'last_error': p.last_error,
                    'avg_response_time_ms': round(p.avg_response_time_ms, 1),
                }
                for p in self.providers()
            ],
        }

    def __len__(self) -> int:
        return len(self._providers)
