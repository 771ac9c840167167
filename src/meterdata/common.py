# Format constants for grid operator meter export files

DATE_HEADER_TOKEN = "DD"
COOPERATIVE_HEADER_TOKEN = "kSE"

CONSUMPTION_TAG = "CP"
PRODUCTION_TAG = "CO"
BALANCE_TAG = "CB"
CHANNEL_TAGS = frozenset({CONSUMPTION_TAG, PRODUCTION_TAG, BALANCE_TAG})

# Metadata rows that can look like data rows
METADATA_TOKENS = frozenset({"kOSD", "kSE", "DCW", "DD", "VV"})
# Tokens never accepted as a meter id when classifying uploads
RESERVED_TOKENS = METADATA_TOKENS | {"Kod_PPE"}

FIELD_SEPARATOR = ";"
VALUE_SEPARATOR = ","
FIRST_HOUR_COLUMN = 3
HOURS_PER_DAY = 24

METER_ID_SCAN_LINES = 20
METER_ID_MIN_LENGTH = 6
UNKNOWN_METER_ID = "UNKNOWN_METER"

AGGREGATE_LABEL_SUFFIX = " (Sum)"
DEFAULT_COOPERATIVE_LABEL = "COOPERATIVE"
WHOLE_AGGREGATE_LABEL = "ALL"

PROGRESS_LOG_EVERY = 5
