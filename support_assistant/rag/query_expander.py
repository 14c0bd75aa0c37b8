"""Domain-synonym query expansion applied before embedding."""

from types import MappingProxyType
from typing import List, Mapping, Optional

from support_assistant.utils.logger import get_logger

logger = get_logger()

MAX_TERMS_PER_TRIGGER = 5
MAX_EXPANSION_TERMS = 8

# Trigger phrase -> related terms, matched as case-insensitive substrings
DEFAULT_EXPANSIONS: Mapping[str, str] = MappingProxyType({
    "warranty": "coverage guarantee protection defects repair replacement claim",
    "covered": "coverage warranty included protection eligible",
    "battery": "capacity degradation cells pack range kwh",
    "charge": "charging charger plug station kw connector",
    "charging": "charger plug station supercharger connector kw",
    "range": "miles distance battery efficiency consumption",
    "price": "cost pricing msrp payment fee plan",
    "cost": "price pricing fee payment plan",
    "error": "fault warning code diagnostic troubleshooting",
    "warning": "alert indicator light fault error",
    "won't start": "start power boot ignition 12v battery",
    "tire": "tyre pressure tpms wheel rotation",
    "service": "maintenance appointment inspection repair technician",
    "maintenance": "service schedule inspection fluid filter",
    "software": "update firmware ota version infotainment",
    "update": "software firmware ota upgrade version",
    "app": "mobile application phone remote bluetooth",
    "brake": "braking regenerative pads rotors stopping",
    "noise": "sound rattle vibration squeak hum",
    "subscription": "plan membership monthly premium features",
})


class QueryExpander:
    """Appends related terms to a query to widen semantic recall."""

    def __init__(self, expansions: Optional[Mapping[str, str]] = None):
        """
        Args:
            expansions: Trigger phrase to space-separated related terms.
                Copied into a read-only mapping.
        """
        source = expansions if expansions is not None else DEFAULT_EXPANSIONS
        self.expansions: Mapping[str, str] = MappingProxyType(
            {trigger.lower(): terms for trigger, terms in source.items()}
        )

    def expansion_terms(self, query: str) -> List[str]:
        """Return the deduplicated, capped terms triggered by the query."""
        query_lower = query.lower()
        pool: List[str] = []

        for trigger, related in self.expansions.items():
            if trigger in query_lower:
                pool.extend(related.split()[:MAX_TERMS_PER_TRIGGER])

        terms: List[str] = []
        for term in pool:
            if term not in terms:
                terms.append(term)
        return terms[:MAX_EXPANSION_TERMS]

    def expand(self, query: str) -> str:
        """
        Expand a query with domain synonyms.

        Args:
            query: Original user query

        Returns:
            The query followed by the expansion terms, or the query unchanged
            when no trigger matched
        """
        terms = self.expansion_terms(query)
        if not terms:
            return query

        expanded = f"{query} {' '.join(terms)}"
        logger.debug(f"Expanded query with {len(terms)} terms: {terms}")
        return expanded
