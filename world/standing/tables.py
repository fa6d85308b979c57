"""
Static lookup tables for the scorers.

Open-world: an unknown role, occupation, workplace, faction or
species falls back to the table's default and never raises.
Keys are lower-case; lookups are case-insensitive.
"""

from types import MappingProxyType
from typing import Mapping, Optional


DEFAULT_ROLE_WEIGHT = 0.1
DEFAULT_CATEGORY_WEIGHT = 0.3
DEFAULT_SPECIES_ALIGNMENT = 0.5


def _table(values: dict) -> Mapping[str, float]:
    return MappingProxyType(dict(values))


# =============================================================================
# ROLE TABLES
# =============================================================================

ROLE_WEIGHTS = _table({
    "leader": 1.0,
    "officer": 0.8,
    "sergeant": 0.7,
    "member": 0.5,
    "recruit": 0.3,
    "associate": 0.2,
})

INITIATIVE_WEIGHTS = _table({
    "leader": 0.9,
    "officer": 0.7,
    "sergeant": 0.5,
    "member": 0.3,
    "recruit": 0.1,
    "associate": 0.1,
})

ROLE_BENEFITS = _table({
    "leader": 1.0,
    "officer": 0.8,
    "sergeant": 0.7,
    "member": 0.5,
    "recruit": 0.3,
    "associate": 0.2,
})

ROLE_PRESSURE = _table({
    "leader": 0.9,
    "officer": 0.8,
    "sergeant": 0.7,
    "member": 0.5,
    "recruit": 0.3,
    "associate": 0.2,
})


# =============================================================================
# WORK TABLES
# =============================================================================

WORKPLACE_WEIGHTS = _table({
    "guard-post": 0.9,
    "tavern": 0.6,
    "shop": 0.5,
    "mill": 0.4,
    "marina": 0.5,
    "caravan": 0.7,
})

WORKPLACE_BENEFITS = _table({
    "guard-post": 0.8,
    "tavern": 0.6,
    "shop": 0.7,
    "mill": 0.5,
    "marina": 0.6,
    "caravan": 0.7,
})

OCCUPATION_WEIGHTS = _table({
    "guard": 0.9,
    "soldier": 0.8,
    "merchant": 0.6,
    "artisan": 0.5,
    "farmer": 0.4,
    "laborer": 0.3,
    "noble": 0.7,
    "scholar": 0.6,
})


# =============================================================================
# FACTION TABLES
# =============================================================================

FACTION_ACTIVITY = _table({
    "town guard": 0.9,
    "council": 0.8,
    "merchants guild": 0.6,
    "craftsmen": 0.5,
    "farmers": 0.4,
    "refugees": 0.2,
})

FACTION_BENEFITS = _table({
    "town guard": 0.9,
    "council": 0.8,
    "merchants guild": 0.7,
    "craftsmen": 0.6,
    "farmers": 0.4,
    "refugees": 0.2,
})

FACTION_POWER = _table({
    "town guard": 0.9,
    "council": 0.8,
    "merchants guild": 0.7,
    "craftsmen": 0.6,
    "farmers": 0.4,
    "refugees": 0.2,
})

# species -> faction name -> alignment
SPECIES_ALIGNMENT = MappingProxyType({
    "human": _table({
        "town guard": 0.8,
        "council": 0.9,
        "merchants guild": 0.7,
        "craftsmen": 0.6,
    }),
    "elf": _table({
        "council": 0.8,
        "craftsmen": 0.9,
        "merchants guild": 0.6,
    }),
    "dwarf": _table({
        "craftsmen": 0.9,
        "merchants guild": 0.8,
        "town guard": 0.7,
    }),
})


# =============================================================================
# LOOKUPS
# =============================================================================

def lookup(table: Mapping[str, float], key: Optional[str], default: float) -> float:
    """
    Look up a weight with fallback.

    Args:
        table: One of the tables above
        key: Category name, any case; None or empty means unknown
        default: Weight for unknown categories

    Returns:
        Table weight, or default
    """
    if not key:
        return default
    return table.get(key.strip().lower(), default)


def role_weight(role: Optional[str]) -> float:
    return lookup(ROLE_WEIGHTS, role, DEFAULT_ROLE_WEIGHT)


def initiative_weight(role: Optional[str]) -> float:
    return lookup(INITIATIVE_WEIGHTS, role, DEFAULT_ROLE_WEIGHT)


def role_benefit(role: Optional[str]) -> float:
    return lookup(ROLE_BENEFITS, role, DEFAULT_ROLE_WEIGHT)


def role_pressure(role: Optional[str]) -> float:
    return lookup(ROLE_PRESSURE, role, DEFAULT_ROLE_WEIGHT)


def workplace_weight(workplace_type: Optional[str]) -> float:
    return lookup(WORKPLACE_WEIGHTS, workplace_type, DEFAULT_CATEGORY_WEIGHT)


def workplace_benefit(workplace_type: Optional[str]) -> float:
    return lookup(WORKPLACE_BENEFITS, workplace_type, DEFAULT_CATEGORY_WEIGHT)


def occupation_weight(occupation: Optional[str]) -> float:
    return lookup(OCCUPATION_WEIGHTS, occupation, DEFAULT_CATEGORY_WEIGHT)


def faction_activity(faction_name: Optional[str]) -> float:
    return lookup(FACTION_ACTIVITY, faction_name, DEFAULT_CATEGORY_WEIGHT)


def faction_benefit(faction_name: Optional[str]) -> float:
    return lookup(FACTION_BENEFITS, faction_name, DEFAULT_CATEGORY_WEIGHT)


def faction_power(faction_name: Optional[str]) -> float:
    return lookup(FACTION_POWER, faction_name, DEFAULT_CATEGORY_WEIGHT)


def species_alignment(species: Optional[str], faction_name: Optional[str]) -> float:
    """Alignment of a species with a faction; unknown pairs are neutral (0.5)."""
    if not species:
        return DEFAULT_SPECIES_ALIGNMENT
    by_faction = SPECIES_ALIGNMENT.get(species.strip().lower())
    if by_faction is None:
        return DEFAULT_SPECIES_ALIGNMENT
    return lookup(by_faction, faction_name, DEFAULT_SPECIES_ALIGNMENT)
