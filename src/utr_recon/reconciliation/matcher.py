"""UTR matching against a normalized ledger."""

import logging
from typing import List, Optional, Sequence

from .models import CanonicalTransaction

logger = logging.getLogger(__name__)


class UTRMatcher:
    """Finds the ledger entry carrying a submitted UTR.

    Comparison is exact and case-sensitive on the trimmed UTR. When several
    entries carry the same UTR, the first one in provider order wins.
    """

    def find_all(
        self,
        transactions: Sequence[CanonicalTransaction],
        utr: str,
    ) -> List[CanonicalTransaction]:
        """Return every entry whose UTR equals the trimmed submission.

        Args:
            transactions: Normalized ledger in provider order.
            utr: Submitted UTR.

        Returns:
            Matching entries in provider order.
        """
        wanted = utr.strip()
        if not wanted:
            return []
        return [t for t in transactions if t.utr is not None and t.utr == wanted]

    def match(
        self,
        transactions: Sequence[CanonicalTransaction],
        utr: str,
    ) -> Optional[CanonicalTransaction]:
        """Return the single matching entry, or None.

        Args:
            transactions: Normalized ledger in provider order.
            utr: Submitted UTR.

        Returns:
            The first matching CanonicalTransaction, or None if absent.
        """
        candidates = self.find_all(transactions, utr)
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.warning(
                f"UTR {utr.strip()} matched {len(candidates)} ledger entries; "
                f"using {candidates[0].id}"
            )
        return candidates[0]
