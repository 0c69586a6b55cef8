"""
Location tracking enumerations.
"""

import enum


class LocationSource(str, enum.Enum):
    """Channel a location report arrived through."""
    OWNER = "owner"
    LIVE_GPS = "live_gps"
    CUSTOMER = "customer"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    ADMIN = "admin"
    MANUAL = "manual"

    @property
    def is_social(self) -> bool:
        return self in SOCIAL_SOURCES


SOCIAL_SOURCES = frozenset({LocationSource.INSTAGRAM, LocationSource.FACEBOOK, LocationSource.TWITTER})


class Confidence(str, enum.Enum):
    """Coarse trust label attached to a report."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
