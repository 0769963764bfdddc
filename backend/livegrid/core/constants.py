"""Shared application constants.

Centralizes repeat values used across tracking and sharing logic so we can
document and adjust them in one place.
"""

# Marker colours assigned to athletes by input index (cycled)
ATHLETE_COLORS = [
    "#e6194b",
    "#3cb44b",
    "#4363d8",
    "#f58231",
    "#911eb4",
    "#42d4f4",
    "#f032e6",
    "#9a6324",
    "#800000",
    "#000075",
]

# [lat, lon] used before any athlete has reported a position
DEFAULT_MAP_CENTER = (39.8283, -98.5795)

# Share ids are drawn from this alphabet
SHARE_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

# Hex characters kept from the SHA-256 state fingerprint (64 bits)
STATE_HASH_HEX_CHARS = 16

SHARE_TYPE_GRID = "grid"
SHARE_TYPE_MULTI_TRACK = "multi-track"

PARSE_ERROR = "Failed to parse URL"
FETCH_ERROR = "Failed to fetch tracking data"
