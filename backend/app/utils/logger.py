import logging
import sys
import os
import json
from datetime import datetime
from typing import Any, Dict, Optional

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger("basic_shop")

SENSITIVE_KEYS = (
    "password", "access_token", "refresh_token", "token", "api_key", "authorization",
)

# Request bodies on these paths carry credentials and are never journaled.
REDACTED_BODY_PATHS = (
    "/v1/users/signup",
    "/v1/users/signup-admin",
    "/v1/users/signin",
)


class RequestJournal:
    """Appends one JSON line per handled request to a per-day file.

    Entries are also kept in a bounded in-memory buffer so the latest
    requests can be inspected without reading the file.
    """

    def __init__(self, log_dir: str, max_logs: int = 1000):
        self.log_dir = log_dir
        self.logs = []
        self.max_logs = max_logs

    def record(
        self,
        ip: Optional[str],
        method: str,
        path: str,
        status_code: int,
        query: Optional[Dict[str, Any]] = None,
        body: Any = None,
        response: Any = None,
    ) -> Dict[str, Any]:
        if path in REDACTED_BODY_PATHS:
            body = "***"
        entry = {
            "time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "ip": ip,
            "method": method,
            "statusCode": status_code,
            "path": path,
            "query": query or {},
            "body": self._sanitize(body),
            "response": self._sanitize(response),
        }

        self.logs.append(entry)
        if len(self.logs) > self.max_logs:
            self.logs.pop(0)

        self._save(entry)
        return entry

    def _sanitize(self, data: Any) -> Any:
        if isinstance(data, list):
            return [self._sanitize(item) for item in data]
        if not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_KEYS and value is not None:
                value = str(value)
                sanitized[key] = f"{value[:4]}...{value[-4:]}" if len(value) > 8 else "***"
            else:
                sanitized[key] = self._sanitize(value)
        return sanitized

    def _save(self, entry: Dict[str, Any]) -> None:
        filename = os.path.join(self.log_dir, f"requests_{datetime.now().strftime('%Y%m%d')}.log")
        try:
            os.makedirs(self.log_dir, exist_ok=True)
            with open(filename, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry, default=str) + "\n")
        except OSError as e:
            logger.error(f"Failed to write request journal {filename}: {e}")

    def get_logs(self, limit: Optional[int] = None) -> list:
        if limit:
            return self.logs[-limit:]
        return self.logs
