"""
Presence Registry
Counts live connections per identity so online/offline fire only on the edges.

Pure in-memory counter with no I/O. The caller owns the side effects:
marking device tokens active/inactive and broadcasting userOnline/userOffline.
"""

import logging
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)

ACCOUNT_TYPES = ("customer", "admin", "superadmin")


class Identity(NamedTuple):
    """(account_id, account_type) pair for a customer, shop admin or superadmin"""

    account_id: int
    account_type: str

    @classmethod
    def parse(cls, account_id, account_type) -> Optional["Identity"]:
        """Build an identity from untrusted client input; None when unusable"""
        kind = str(account_type or "").strip().lower()
        if kind not in ACCOUNT_TYPES:
            return None
        try:
            return cls(int(account_id), kind)
        except (TypeError, ValueError):
            return None

    def as_payload(self) -> dict:
        return {"accountId": self.account_id, "accountType": self.account_type}


class PresenceRegistry:
    """Reference-counted presence keyed by identity"""

    def __init__(self):
        self._counts: dict[Identity, int] = {}

    def acquire(self, identity: Identity) -> bool:
        """Increment; True when this is the identity's first live connection"""
        count = self._counts.get(identity, 0) + 1
        self._counts[identity] = count
        logger.debug(f"Presence {identity.account_type}:{identity.account_id} -> {count}")
        return count == 1

    def release(self, identity: Identity) -> bool:
        """Decrement (floored at 0); True when the last connection just went away"""
        count = self._counts.get(identity, 0)
        if count <= 0:
            # Nothing held for this identity; not an offline edge
            self._counts.pop(identity, None)
            return False

        count -= 1
        if count == 0:
            del self._counts[identity]
            logger.debug(f"Presence {identity.account_type}:{identity.account_id} -> 0")
            return True

        self._counts[identity] = count
        logger.debug(f"Presence {identity.account_type}:{identity.account_id} -> {count}")
        return False

    def count(self, identity: Identity) -> int:
        return self._counts.get(identity, 0)

    def is_online(self, identity: Identity) -> bool:
        return identity in self._counts

    def online(self) -> list[Identity]:
        return list(self._counts)
