"""
User roles enumeration.

Defines the role types for the food truck marketplace.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Marketplace operator, may override any truck's location
        OWNER: Owns and operates one or more food trucks
        CUSTOMER: Discovers trucks and may report sightings (default role)
    """
    ADMIN = "ADMIN"
    OWNER = "OWNER"
    CUSTOMER = "CUSTOMER"
