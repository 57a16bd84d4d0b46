from typing import Optional, Protocol


class KeywordLookupPort(Protocol):
    def lookup(self, keyword: str) -> Optional[str]:
        """Reply text configured for `keyword`, or None."""

    def matches(self, keyword: str) -> bool:
        """True if `keyword` is a configured trigger."""
