"""
Файловое хранилище для чат-ретранслятора.
Хранит, какому клиенту принадлежит каждый тред. Сами сообщения
остаются во внешнем сервисе, здесь их нет.
"""
import json
import os
import threading
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

logger = logging.getLogger(__name__)

class FileStorage:
    """Класс для работы с файловым хранилищем."""
    def __init__(self, data_dir: str = "data", filename: str = "threads.json"):
        self.data_dir = data_dir
        self.filename = filename
        self.filepath = os.path.join(data_dir, filename)
        self.lock = threading.RLock()
        self.data = {"threads": {}}
        os.makedirs(data_dir, exist_ok=True)
        self._load_data()
    def _load_data(self) -> None:
        try:
            if os.path.exists(self.filepath):
                with open(self.filepath, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict) or not isinstance(data.get("threads", {}), dict):
                    logger.error(f"Неверный формат {self.filepath}, используем пустое хранилище")
                    data = {}
                data.setdefault("threads", {})
                self.data = data
                logger.info(f"Данные загружены из {self.filepath}")
            else:
                logger.info(f"Файл {self.filepath} не существует, используем пустое хранилище")
        except (OSError, ValueError) as e:
            logger.error(f"Ошибка при загрузке данных: {e}")
            self.data = {"threads": {}}
    def _save_data(self) -> None:
        try:
            if os.path.exists(self.filepath):
                backup_path = f"{self.filepath}.bak"
                with open(self.filepath, 'r') as src:
                    with open(backup_path, 'w') as dst:
                        dst.write(src.read())
            with open(self.filepath, 'w') as f:
                json.dump(self.data, f, indent=2)
            logger.debug(f"Данные сохранены в {self.filepath}")
        except OSError as e:
            logger.error(f"Ошибка при сохранении данных: {e}")
    def add_thread(self, thread_id: str, owner: str) -> None:
        with self.lock:
            current_time = datetime.now(timezone.utc).isoformat()
            if thread_id not in self.data["threads"]:
                self.data["threads"][thread_id] = {
                    "owner": owner,
                    "created_at": current_time,
                    "last_activity": current_time,
                }
                self._save_data()
    def get_thread(self, thread_id: str) -> Optional[Dict[str, Any]]:
        with self.lock:
            record = self.data["threads"].get(thread_id)
            return dict(record) if record is not None else None
    def touch_thread(self, thread_id: str) -> None:
        with self.lock:
            if thread_id in self.data["threads"]:
                self.data["threads"][thread_id]["last_activity"] = datetime.now(timezone.utc).isoformat()
            else:
                logger.warning(f"Попытка обновить активность несуществующего треда {thread_id}")
    def get_inactive_threads(self, hours: int = 24) -> List[str]:
        with self.lock:
            current_time = datetime.now(timezone.utc)
            inactive_threads = []
            for thread_id, thread_data in self.data["threads"].items():
                last_activity = datetime.fromisoformat(thread_data["last_activity"])
                time_diff = (current_time - last_activity).total_seconds() / 3600
                if time_diff >= hours:
                    inactive_threads.append(thread_id)
            return inactive_threads
    def cleanup_inactive_threads(self, hours: int = 24) -> List[str]:
        with self.lock:
            inactive_threads = self.get_inactive_threads(hours)
            for thread_id in inactive_threads:
                del self.data["threads"][thread_id]
            if inactive_threads:
                self._save_data()
            return inactive_threads
    def save(self) -> None:
        with self.lock:
            self._save_data()
