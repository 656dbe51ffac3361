"""Game constants for Rikken."""

# Table size
MIN_SEATS = 4
MAX_SEATS = 6
SEATS_ONE_SITTER = 5
SEATS_TWO_SITTERS = 6
OPPOSITE_SEAT_OFFSET = 3  # second sitter at a 6-seat table

# Tricks
TOTAL_TRICKS = 13
TRICK_OPTION_SPREAD = 5  # selectable tricks = minimum +/- 5

# Multipliers
SOLO_FACTOR = 3
DOUBLING_FACTOR = 2
CLOSING_STACK_FACTOR = 4

# Meerdere
MIN_DECLARANTS = 2
MAX_DECLARANTS = 4

# Variant kinds
KIND_TEAM = "team_declared"
KIND_SOLO = "solo_only"
KIND_STANDARD = "standard"  # resolved by a made/failed flag
KIND_ALL_DECLARE = "all_declare"
KIND_MULTIPLE = "multiple"
KIND_CLOSING = "closing"
VARIANT_KINDS = (
    KIND_TEAM,
    KIND_SOLO,
    KIND_STANDARD,
    KIND_ALL_DECLARE,
    KIND_MULTIPLE,
    KIND_CLOSING,
)

# Meerdere settlement policies
SETTLE_DEBIT_OTHERS = "debit_others"
SETTLE_CREDIT_DECLARANTS = "credit_declarants"
SETTLEMENT_POLICIES = (SETTLE_DEBIT_OTHERS, SETTLE_CREDIT_DECLARANTS)

# Night statuses
STATUS_PLAYING = "playing"
STATUS_CLOSED = "closed"

# Well-known variant names
VARIANT_ALLEMAAL_PIEK = "Allemaal Piek"
VARIANT_SCHOPPEN_MIE = "Schoppen Mie"

# Default night settings
DEFAULT_SETTINGS = {
    "meerdere_enabled": False,
    "meerdere_settlement": SETTLE_DEBIT_OTHERS,
    "allemaal_piek_success_credit": False,
}
