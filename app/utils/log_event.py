import json
from datetime import datetime, timezone
from core.logger import logger

# Truncate free text fields so one bad message body cannot flood the log
_MAX_FIELD_LENGTH = 500


def log_event(event: str, level: str = "info", **fields) -> dict:
    """
    Emit a single JSON log line for a worker event.
    """
    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
    }
    for key, value in fields.items():
        if isinstance(value, str) and len(value) > _MAX_FIELD_LENGTH:
            value = value[:_MAX_FIELD_LENGTH]
        log_data[key] = value

    line = json.dumps(log_data, default=str)
    if level == "error":
        logger.error(line)
    elif level == "warning":
        logger.warning(line)
    else:
        logger.info(line)

    return log_data
