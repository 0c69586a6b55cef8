"""Deterministic location reconciliation policy.

Pure decision logic: no I/O, no persistence, no broadcasting. The ingest
boundary validates reports before they get here.
"""

import enum
from typing import Optional

from truckspot.app.domain.location.report import LocationReport, TrackingPreferences
from truckspot.app.models.location_enums import LocationSource


class Decision(str, enum.Enum):
    ACCEPT = "accept"            # becomes current, recorded in history
    RECORD_ONLY = "record_only"  # history only, pending verification
    REJECT = "reject"            # nothing recorded


class ReconciliationPolicy:
    """Decides whether an incoming report replaces a truck's current location."""

    # Channels the owner controls directly, plus the admin override
    AUTHORITATIVE_SOURCES = frozenset(
        {LocationSource.ADMIN, LocationSource.OWNER, LocationSource.LIVE_GPS}
    )

    def evaluate(
        self,
        current: Optional[LocationReport],
        incoming: LocationReport,
        preferences: TrackingPreferences,
    ) -> Decision:
        """Decide what to do with ``incoming``.

        Policy, first match wins:
        - No current location: accept.
        - Admin, owner check-in or live GPS: accept.
        - Customer: reject if the truck disallows reports, record only if it
          requires verification, accept otherwise.
        - Social-media channels: accept (linked to the truck's own accounts).
        - Anything else (manual / legacy): accept.
        """
        if current is None:
            return Decision.ACCEPT

        if incoming.source in self.AUTHORITATIVE_SOURCES:
            return Decision.ACCEPT

        if incoming.source == LocationSource.CUSTOMER:
            if not preferences.allow_customer_reports:
                return Decision.REJECT
            if preferences.require_location_verification:
                return Decision.RECORD_ONLY
            return Decision.ACCEPT

        if incoming.source.is_social:
            return Decision.ACCEPT

        return Decision.ACCEPT

    def should_accept(
        self,
        current: Optional[LocationReport],
        incoming: LocationReport,
        preferences: TrackingPreferences,
    ) -> bool:
        return self.evaluate(current, incoming, preferences) is Decision.ACCEPT
