"""键值存储后端。

PersistenceGateway 只依赖 KeyValueStore 协议（字符串键 -> 字符串值），
任何实现了 get_item/set_item 的后端都可以替换进来。
"""

import json
import os
from pathlib import Path
from typing import Dict, Optional, Protocol
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.exceptions import StorageError


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class MemoryKeyValueStore:
    """进程内存实现，主要用于测试。"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonKeyValueStore:
    """把所有键值保存在单个 JSON 文件里（原子替换写入）。"""

    FILE_NAME = "prefs.json"

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / self.FILE_NAME

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageError:
            # 损坏的文件直接覆盖
            data = {}
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> Dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(code="STORE_READ_ERROR", message=str(e))
        if not isinstance(data, dict):
            raise StorageError(code="STORE_READ_ERROR", message=f"{self._path} is not a JSON object")
        return data

    def _write_all(self, data: Dict[str, object]) -> None:
        tmp_path = self._root / f"{self.FILE_NAME}.{uuid4().hex}.tmp"
        try:
            tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(code="STORE_WRITE_ERROR", message=str(e))
