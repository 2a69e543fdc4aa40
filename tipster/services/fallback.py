"""Static primary -> secondary fallback mapping.

The mapping is validated once at startup and read-only afterwards. A bad
mapping is a ConfigurationError that must stop the process, never a warning.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

from tipster.core.errors import FallbackConfigError
from tipster.providers.base import PredictionProvider
from tipster.providers.registry import MODEL_FALLBACKS

logger = logging.getLogger(__name__)


def validate_fallback_mapping(mapping: Mapping[str, str], provider_ids: Iterable[str]) -> Dict[str, str]:
    """Check every mapping and return the ones that apply to registered providers.

    Rules:
        - no self-reference (A -> A)
        - the target must be a registered provider
        - no 2-cycle (A -> B and B -> A)
        - a target may not have a fallback of its own (depth is at most 1)

    Mappings whose primary is not registered are skipped: they describe a
    model that is currently switched off.

    Raises:
        FallbackConfigError: Listing every violation and the valid provider ids
    """
    valid_ids = set(provider_ids)
    violations = []
    effective: Dict[str, str] = {}

    for primary, secondary in sorted(mapping.items()):
        if primary == secondary:
            violations.append(f"{primary} -> {secondary}: a model cannot fall back to itself")
            continue
        if primary not in valid_ids:
            logger.debug(f"Skipping fallback {primary} -> {secondary}: {primary} is not registered")
            continue
        if secondary not in valid_ids:
            violations.append(f"{primary} -> {secondary}: target '{secondary}' is not a registered provider")
            continue
        if mapping.get(secondary) == primary:
            violations.append(f"{primary} -> {secondary}: cycle, {secondary} maps back to {primary}")
            continue
        if secondary in mapping:
            violations.append(
                f"{primary} -> {secondary}: target has its own fallback "
                f"({secondary} -> {mapping[secondary]}), chains are not allowed"
            )
            continue
        effective[primary] = secondary

    if violations:
        raise FallbackConfigError(violations, sorted(valid_ids))

    logger.info(f"Fallback mapping validated: {len(effective)} active mapping(s)")
    return effective


class FallbackResolver:
    """Looks up the secondary provider for a failing primary."""

    def __init__(
        self,
        providers: Mapping[str, PredictionProvider],
        mapping: Optional[Mapping[str, str]] = None,
    ):
        """
        Validate the mapping against the registered providers.

        Args:
            providers: All registered providers by id
            mapping: primary id -> secondary id (defaults to the static table)

        Raises:
            FallbackConfigError: If the mapping is invalid
        """
        self._providers = dict(providers)
        self._mapping = validate_fallback_mapping(
            MODEL_FALLBACKS if mapping is None else mapping, self._providers.keys()
        )

    @property
    def mapping(self) -> Dict[str, str]:
        return dict(self._mapping)

    def resolve(self, primary_id: str) -> Optional[str]:
        """Secondary id for primary_id, or None.

        None when there is no mapping or the secondary cannot be called right
        now because its credentials are missing.
        """
        secondary_id = self._mapping.get(primary_id)
        if secondary_id is None:
            return None
        secondary = self._providers.get(secondary_id)
        if secondary is None or not secondary.is_configured():
            logger.debug(f"Fallback {primary_id} -> {secondary_id} unavailable: not configured")
            return None
        return secondary_id

    def resolve_provider(self, primary_id: str) -> Optional[PredictionProvider]:
        secondary_id = self.resolve(primary_id)
        return self._providers[secondary_id] if secondary_id else None

    def fallback_for(self, primary_id: str) -> Optional[str]:
        """Configured target regardless of credential availability (for reporting)."""
        return self._mapping.get(primary_id)
