"""
Сервис для работы с API ассистентов OpenAI.
Треды, сообщения и запуски; ошибки SDK переводятся в ошибки ретранслятора.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional

import openai
from openai import APIConnectionError, APIStatusError

import config
from errors import BackendError, BackendUnavailable

logger = logging.getLogger(__name__)


def build_client() -> Any:
    """Клиент создаётся один раз на процесс."""
    return openai.AsyncOpenAI(
        api_key=config.OPENAI_API_KEY,
        organization=(config.OPENAI_ORG_ID or None),
        max_retries=config.OPENAI_MAX_RETRIES,
        timeout=config.OPENAI_TIMEOUT,
        default_headers={"OpenAI-Beta": "assistants=v2"},
    )


def extract_text(messages: Iterable[Any]) -> List[str]:
    """Текстовые части сообщений ассистента, в порядке следования."""
    texts = []
    for message in messages:
        if message.role != "assistant":
            continue
        for item in message.content or []:
            if item.type == "text":
                texts.append(item.text.value)
    return texts


@contextmanager
def _backend_call(action: str):
    try:
        yield
    except APIStatusError as e:
        logger.error(f"Ошибка внешнего API при {action}: {e.status_code}")
        logger.debug(f"Заголовки ответа: {dict(e.response.headers)}")
        raise BackendError(e.status_code, e.response.text, dict(e.response.headers)) from e
    except APIConnectionError as e:
        logger.error(f"Внешний API недоступен при {action}: {e}")
        raise BackendUnavailable(f"Внешний API недоступен: {e}") from e


class AgentService:
    """Класс для работы с API агентов."""
    def __init__(self, client: Any = None):
        self.client = client if client is not None else build_client()
    async def create_agent(self, model: str, name: str, instructions: str,
                           tools: Optional[List[Dict[str, Any]]] = None) -> str:
        with _backend_call("создании агента"):
            agent = await self.client.beta.assistants.create(
                model=model,
                name=name,
                instructions=instructions,
                tools=tools or [],
            )
        logger.info(f"Создан агент {agent.id} (модель {model})")
        return agent.id
    async def create_thread(self) -> str:
        with _backend_call("создании треда"):
            thread = await self.client.beta.threads.create()
        return thread.id
    async def add_message(self, thread_id: str, content: str, role: str = "user") -> str:
        with _backend_call(f"добавлении сообщения в тред {thread_id}"):
            message = await self.client.beta.threads.messages.create(
                thread_id=thread_id,
                role=role,
                content=content,
            )
        return message.id
    async def create_run(self, thread_id: str, agent_id: str) -> Any:
        with _backend_call(f"создании запуска для треда {thread_id}"):
            return await self.client.beta.threads.runs.create(
                thread_id=thread_id,
                assistant_id=agent_id,
            )
    async def get_run(self, thread_id: str, run_id: str) -> Any:
        with _backend_call(f"получении запуска {run_id}"):
            return await self.client.beta.threads.runs.retrieve(
                run_id=run_id,
                thread_id=thread_id,
            )
    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        """Отмена без гарантий: ошибка только логируется."""
        try:
            with _backend_call(f"отмене запуска {run_id}"):
                await self.client.beta.threads.runs.cancel(
                    run_id=run_id,
                    thread_id=thread_id,
                )
            logger.info(f"Запуск {run_id} в треде {thread_id} отменён")
        except (BackendError, BackendUnavailable) as e:
            logger.warning(f"Не удалось отменить запуск {run_id} для треда {thread_id}: {e}")
    async def get_reply_texts(self, thread_id: str, run_id: str) -> List[str]:
        with _backend_call(f"получении сообщений из треда {thread_id}"):
            messages = []
            async for message in self.client.beta.threads.messages.list(
                thread_id=thread_id,
                run_id=run_id,
                order="asc",
            ):
                messages.append(message)
        return extract_text(messages)
    async def aclose(self) -> None:
        await self.client.close()
