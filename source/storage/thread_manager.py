"""
Менеджер трейдов для чат-ретранслятора.
Тред создаётся во внешнем сервисе и закрепляется за клиентом,
чужой или неизвестный тред не принимается. Владельцы, давно не
обращавшиеся к треду, забываются при следующем обращении к реестру.
"""
import logging
from typing import Any, Dict, List

from errors import ThreadNotFound
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

class ThreadManager:
    """Класс для управления трейдами и их владельцами."""
    def __init__(self, storage: FileStorage, agent_service: Any, inactive_hours: int = 24):
        self.storage = storage
        self.agent_service = agent_service
        self.inactive_hours = inactive_hours
    def forget_inactive(self) -> List[str]:
        # сам тред остаётся во внешнем сервисе, забываем только владельца
        forgotten = self.storage.cleanup_inactive_threads(self.inactive_hours)
        if forgotten:
            logger.info(f"Забыто {len(forgotten)} неактивных тредов")
        return forgotten
    async def create_thread(self, owner: str) -> str:
        self.forget_inactive()
        thread_id = await self.agent_service.create_thread()
        self.storage.add_thread(thread_id, owner)
        logger.info(f"Создан тред {thread_id}")
        return thread_id
    def resolve(self, thread_id: str, owner: str) -> Dict[str, Any]:
        self.forget_inactive()
        record = self.storage.get_thread(thread_id)
        if record is None:
            logger.warning(f"Запрос к неизвестному треду {thread_id}")
            raise ThreadNotFound(thread_id)
        if record["owner"] != owner:
            logger.warning(f"Запрос к чужому треду {thread_id}")
            raise ThreadNotFound(thread_id)
        self.storage.touch_thread(thread_id)
        return record
