# Global knobs (hub behaviour + demo harness)

# Dispatch error policy
RAISE_OBSERVER_ERRORS = False   # if True -> publish raises DispatchError after full delivery
LOG_OBSERVER_FAILURES = True    # logger.exception for every failing observer

# Registry housekeeping
PRUNE_EMPTY_TOPICS = True       # drop a topic's entry once its last subscriber leaves

# ---------------------------------------------------------------------
# Dispatch journal (CSV, one row per publish call).
# Set to None to keep statistics in memory only.
# ---------------------------------------------------------------------
DISPATCH_LOG_PATH = "logs/dispatch_log.csv"

JOURNAL_FIELDS = [
    "time_s",
    "seq",
    "topic",
    "notified",
    "delivered",
    "failed",
    "errors",
]

# Separator between "Type: message" entries in the errors column
JOURNAL_ERROR_SEP = ";"

# Logging
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Demo harness
DEFAULT_SCENARIO = "login"
