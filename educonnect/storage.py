"""
Persisted key-value store

Stored in ~/.educonnect/storage.json as a flat object whose values are
JSON text, so every entry can be read back independently. A missing
or unreadable entry is reported as absent; reads never raise.
"""

import os
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from educonnect.logging_config import get_logger

logger = get_logger("storage")


# Keys written by the client
TOKEN = "token"
USER_ID = "userId"
ROLE = "role"
ADMIN_TOKEN = "adminToken"
QAO_TOKEN = "qaoToken"
QAO_USER = "qaoUser"
USER = "user"
PAYMENT_DATA = "paymentData"
LAST_PAYMENT = "lastPayment"

ALL_KEYS = (TOKEN, USER_ID, ROLE, ADMIN_TOKEN, QAO_TOKEN, QAO_USER, USER, PAYMENT_DATA, LAST_PAYMENT)


class PersistedStore:
    """Durable text key-value storage backed by a JSON file"""

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed store {self.path}")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            pass

    def set(self, key: str, value: Any) -> None:
        """Serialize value to text and persist it under key"""
        data = self._read_all()
        data[key] = json.dumps(value)
        self._write_all(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or default when absent or corrupt"""
        raw = self._read_all().get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding corrupt entry '{key}'")
            return default

    def get_dict(self, key: str) -> Optional[Dict[str, Any]]:
        """Like get, but only returns JSON objects"""
        value = self.get(key)
        return value if isinstance(value, dict) else None

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def remove(self, key: str) -> None:
        self.clear([key])

    def clear(self, keys: Optional[Iterable[str]] = None) -> None:
        """Remove the given keys, or everything when keys is None"""
        data = self._read_all()
        if keys is None:
            data = {}
        else:
            for key in keys:
                data.pop(key, None)
        self._write_all(data)

    def keys(self) -> List[str]:
        return sorted(self._read_all().keys())
