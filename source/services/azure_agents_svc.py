"""
Сервис для работы с Azure AI Agents (проект Azure AI Foundry).
Аутентификация через DefaultAzureCredential: в App Service это managed identity.
Агенту можно подключить Bing grounding-инструмент.
"""
import logging
from contextlib import contextmanager
from typing import Any, List, Optional

from azure.ai.agents.aio import AgentsClient
from azure.ai.agents.models import (
    BingGroundingSearchConfiguration,
    BingGroundingSearchToolParameters,
    BingGroundingToolDefinition,
    ListSortOrder,
)
from azure.core.exceptions import HttpResponseError, ServiceRequestError, ServiceResponseError
from azure.identity.aio import DefaultAzureCredential

import config
from errors import BackendError, BackendUnavailable
from services.agents_svc import extract_text

logger = logging.getLogger(__name__)


def build_grounding_tool() -> List[BingGroundingToolDefinition]:
    """Bing grounding-инструмент; пустой список, если подключение не задано."""
    if not config.BING_SEARCH_CONNECTION_ID:
        return []
    return [
        BingGroundingToolDefinition(
            bing_grounding=BingGroundingSearchToolParameters(
                search_configurations=[
                    BingGroundingSearchConfiguration(
                        connection_id=config.BING_SEARCH_CONNECTION_ID,
                        count=config.BING_SEARCH_RESULTS_COUNT,
                        freshness=config.BING_SEARCH_RESULTS_TIME_RANGE,
                    )
                ]
            )
        )
    ]


@contextmanager
def _backend_call(action: str):
    try:
        yield
    except HttpResponseError as e:
        response = e.response
        body = response.text() if response is not None else str(e)
        headers = dict(response.headers) if response is not None else {}
        logger.error(f"Ошибка Azure AI Agents при {action}: {e.status_code}")
        logger.debug(f"Заголовки ответа: {headers}")
        raise BackendError(e.status_code or 500, body, headers) from e
    except (ServiceRequestError, ServiceResponseError) as e:
        logger.error(f"Azure AI Agents недоступен при {action}: {e}")
        raise BackendUnavailable(f"Внешний API недоступен: {e}") from e


class AzureAgentService:
    """Тот же набор операций, что у AgentService, поверх AgentsClient."""
    def __init__(self, client: Any = None, credential: Any = None):
        self.credential = credential
        if client is None:
            self.credential = credential or DefaultAzureCredential()
            client = AgentsClient(endpoint=config.AZURE_AI_PROJECT_ENDPOINT, credential=self.credential)
        self.client = client
    async def create_agent(self, model: str, name: str, instructions: str,
                           tools: Optional[List[Any]] = None) -> str:
        with _backend_call("создании агента"):
            agent = await self.client.create_agent(
                model=model,
                name=name,
                instructions=instructions,
                tools=tools or [],
            )
        logger.info(f"Создан агент {agent.id} (модель {model})")
        return agent.id
    async def create_thread(self) -> str:
        with _backend_call("создании треда"):
            thread = await self.client.threads.create()
        return thread.id
    async def add_message(self, thread_id: str, content: str, role: str = "user") -> str:
        with _backend_call(f"добавлении сообщения в тред {thread_id}"):
            message = await self.client.messages.create(
                thread_id=thread_id,
                role=role,
                content=content,
            )
        return message.id
    async def create_run(self, thread_id: str, agent_id: str) -> Any:
        with _backend_call(f"создании запуска для треда {thread_id}"):
            return await self.client.runs.create(thread_id=thread_id, agent_id=agent_id)
    async def get_run(self, thread_id: str, run_id: str) -> Any:
        with _backend_call(f"получении запуска {run_id}"):
            return await self.client.runs.get(thread_id=thread_id, run_id=run_id)
    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        """Отмена без гарантий: ошибка только логируется."""
        try:
            with _backend_call(f"отмене запуска {run_id}"):
                await self.client.runs.cancel(thread_id=thread_id, run_id=run_id)
            logger.info(f"Запуск {run_id} в треде {thread_id} отменён")
        except (BackendError, BackendUnavailable) as e:
            logger.warning(f"Не удалось отменить запуск {run_id} для треда {thread_id}: {e}")
    async def get_reply_texts(self, thread_id: str, run_id: str) -> List[str]:
        with _backend_call(f"получении сообщений из треда {thread_id}"):
            messages = []
            async for message in self.client.messages.list(
                thread_id=thread_id,
                run_id=run_id,
                order=ListSortOrder.ASCENDING,
            ):
                messages.append(message)
        return extract_text(messages)
    async def aclose(self) -> None:
        await self.client.close()
        if self.credential is not None:
            await self.credential.close()
