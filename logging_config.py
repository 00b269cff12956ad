# logging_config.py

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

MAX_LOG_ENTRIES = 10000  # Maximum number of log entries to keep
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SQLiteHandler(logging.Handler):
    def __init__(self, db_path: str, max_entries: int = MAX_LOG_ENTRIES):
        super().__init__()
        self.db_path = db_path
        self.max_entries = max_entries
        self.create_table()

    def create_table(self):
        """Creates the logs table if it doesn't exist."""
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL,
                    logger TEXT,
                    message TEXT NOT NULL,
                    exception TEXT
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def emit(self, record):
        """Inserts a log record and drops the oldest rows beyond max_entries."""
        try:
            exception = None
            if record.exc_info:
                exception = logging.Formatter().formatException(record.exc_info)

            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute("""
                    INSERT INTO logs (timestamp, level, logger, message, exception)
                    VALUES (:timestamp, :level, :logger, :message, :exception)
                """, {
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": record.getMessage(),
                    "exception": exception,
                })

                count = conn.execute("SELECT COUNT(*) FROM logs").fetchone()[0]
                if count > self.max_entries:
                    conn.execute("""
                        DELETE FROM logs
                        WHERE id IN (
                            SELECT id FROM logs
                            ORDER BY id ASC
                            LIMIT ?
                        )
                    """, (count - self.max_entries,))
                conn.commit()
            finally:
                conn.close()
        except Exception:
            self.handleError(record)


def setup_logging(debug: bool = False, log_db_path: Optional[str] = None):
    logger = logging.getLogger()
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)

    # Replace handlers installed by a previous call
    for handler in list(logger.handlers):
        if getattr(handler, "_webhook_handler", False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._webhook_handler = True
    logger.addHandler(console_handler)

    if log_db_path:
        sqlite_handler = SQLiteHandler(db_path=log_db_path, max_entries=MAX_LOG_ENTRIES)
        sqlite_handler.setLevel(level)
        sqlite_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        sqlite_handler._webhook_handler = True
        logger.addHandler(sqlite_handler)
