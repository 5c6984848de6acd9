from wa_automation.shared.utils.datetime import ensure_utc, elapsed_ms, utc_now
from wa_automation.shared.utils.generators import generate_cuid
from wa_automation.shared.utils.sanitization import validate_sql_identifier

__all__ = [
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "elapsed_ms",
    "validate_sql_identifier",
]
