import json
import logging
import os


def setup_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level)
    if os.environ.get("JSON_LOGS", "0") == "1":
        handler = JSONLogHandler()
        handler.setLevel(level)
        logging.getLogger().handlers = [handler]


class JSONLogHandler(logging.StreamHandler):
    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            msg = {
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            session_id = getattr(record, "session_id", None)
            if session_id:
                msg["session_id"] = session_id
            if record.exc_info:
                msg["exc_info"] = logging.Formatter().formatException(record.exc_info)
            self.stream.write(json.dumps(msg) + "\n")
            self.flush()
        except Exception:
            self.handleError(record)
