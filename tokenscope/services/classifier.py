"""
Scam Classifier

Decides whether a token held by an account is shown or treated as spam.

Order of evaluation:
1. Allow-listed ids are always included.
2. Any heuristic pattern matching the symbol, the id, or the reference URI
   excludes the token.
3. Otherwise the token is included only when it carries an icon or a
   reference (configurable; see ``require_descriptive_metadata``).

Adapters that cannot fetch metadata (ownership-indexed chains) only have the
token id to go on, so they use ``classify_identifier`` which stops after
step 2.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Pattern, Tuple

from .models import Token

# Promotional wording seen in spam token symbols and contract names
PROMO_KEYWORDS_RE = re.compile(r"(?:free|airdrop|reward|giveaway|claim|won|raffle)", re.IGNORECASE)

# Anything that looks like it wants the user to visit a site
URL_SHAPED_RE = re.compile(r"(?:http|www|\.com|\.org|\.net)", re.IGNORECASE)

ATTENTION_GLYPHS_RE = re.compile("[\U0001F389\U0001F4B0\U0001F911\U0001F535\U0001F449]")

DEFAULT_SCAM_PATTERNS: Tuple[Pattern[str], ...] = (
    PROMO_KEYWORDS_RE,
    URL_SHAPED_RE,
    ATTENTION_GLYPHS_RE,
)

AllowList = Callable[[str], bool]


@dataclass(frozen=True)
class ScamClassifier:
    patterns: Tuple[Pattern[str], ...] = DEFAULT_SCAM_PATTERNS
    require_descriptive_metadata: bool = True

    def matches_scam_pattern(self, fields: Iterable[Optional[str]]) -> bool:
        values = [value for value in fields if value]
        return any(pattern.search(value) for pattern in self.patterns for value in values)

    def classify(self, token: Token, is_allow_listed: AllowList) -> bool:
        """Return True when ``token`` should appear in the output."""
        if is_allow_listed(token.id):
            return True
        if self.matches_scam_pattern((token.symbol, token.id, token.reference)):
            return False
        if not self.require_descriptive_metadata:
            return True
        return bool(token.icon or token.reference)

    def classify_identifier(self, token_id: str, is_allow_listed: AllowList) -> bool:
        """Allow-list and pattern check against a bare token id."""
        if is_allow_listed(token_id):
            return True
        return not self.matches_scam_pattern((token_id,))


__all__ = [
    "ScamClassifier",
    "DEFAULT_SCAM_PATTERNS",
    "PROMO_KEYWORDS_RE",
    "URL_SHAPED_RE",
    "ATTENTION_GLYPHS_RE",
]
