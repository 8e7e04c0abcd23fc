"""
Ретранслятор чата.
Принимает промпт, передаёт его агенту (тред, сообщение, запуск, опрос)
или простому scoring endpoint и возвращает текст ответа.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional

from starlette.concurrency import run_in_threadpool

from errors import BackendNotConfigured, InvalidArgument, RunAborted, RunFailed, RunTimeout
from schemas import ChatResponse
from services.agents_svc import AgentService
from services.endpoint_svc import ScoringEndpointService
from storage.thread_manager import ThreadManager

logger = logging.getLogger(__name__)

# пока запуск в одном из этих статусов, продолжаем опрос
POLLED_STATUSES = ("queued", "in_progress", "requires_action")

DisconnectCheck = Callable[[], Awaitable[bool]]


def run_status(run: Any) -> str:
    # Azure SDK отдаёт статус как str-enum
    status = run.status
    return getattr(status, "value", status)


def validate_prompt(prompt: Any) -> str:
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidArgument("Prompt cannot be null, empty, or whitespace.")
    return prompt


class ChatRelay:
    """Класс, связывающий HTTP-запрос с внешним бэкендом."""
    def __init__(self, backend: str = "agents",
                 thread_manager: Optional[ThreadManager] = None,
                 agent_service: Optional[AgentService] = None,
                 endpoint_service: Optional[ScoringEndpointService] = None,
                 agent_id: Optional[str] = None,
                 model: Optional[str] = None,
                 agent_name: str = "Chatbot Agent",
                 instructions: str = "You are a helpful Chatbot agent.",
                 tools: Optional[List[Any]] = None,
                 poll_interval: float = 0.5,
                 timeout: float = 120.0,
                 reply_mode: str = "all",
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.backend = backend
        self.thread_manager = thread_manager
        self.agent_service = agent_service
        self.endpoint_service = endpoint_service
        self.agent_id = agent_id or None
        self.model = model
        self.agent_name = agent_name
        self.instructions = instructions
        self.tools = tools or []
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.reply_mode = reply_mode
        self.sleep = sleep
        self.clock = clock
        self._agent_lock = asyncio.Lock()

    @property
    def uses_threads(self) -> bool:
        return self.backend == "agents"

    def _require_agents(self) -> None:
        if self.agent_service is None or self.thread_manager is None:
            raise BackendNotConfigured("Бэкенд агентов не настроен")

    async def ensure_agent(self) -> str:
        """Агент создаётся один раз и переиспользуется всеми запросами."""
        if self.agent_id:
            return self.agent_id
        async with self._agent_lock:
            if not self.agent_id:
                if not self.model:
                    raise BackendNotConfigured("Не задан ни AGENT_ID, ни DEFAULT_MODEL")
                self.agent_id = await self.agent_service.create_agent(
                    model=self.model,
                    name=self.agent_name,
                    instructions=self.instructions,
                    tools=self.tools,
                )
        return self.agent_id

    async def create_thread(self, caller: str) -> str:
        if not self.uses_threads:
            raise InvalidArgument("Текущий бэкенд не поддерживает треды")
        self._require_agents()
        return await self.thread_manager.create_thread(caller)

    async def ask_endpoint(self, prompt: Any) -> ChatResponse:
        prompt = validate_prompt(prompt)
        if self.endpoint_service is None:
            raise BackendNotConfigured("Scoring endpoint не настроен")
        logger.debug(f"Prompt received {prompt}")
        answer = await run_in_threadpool(self.endpoint_service.score, prompt)
        return ChatResponse(success=True, data=answer)

    async def submit_prompt(self, prompt: Any, thread_id: Optional[str] = None,
                            caller: str = "anonymous",
                            is_disconnected: Optional[DisconnectCheck] = None) -> ChatResponse:
        prompt = validate_prompt(prompt)
        if not self.uses_threads:
            if thread_id:
                raise InvalidArgument("Текущий бэкенд не поддерживает треды")
            return await self.ask_endpoint(prompt)
        self._require_agents()
        logger.debug(f"Prompt received {prompt}")

        if thread_id:
            self.thread_manager.resolve(thread_id, caller)
        else:
            thread_id = await self.thread_manager.create_thread(caller)
        agent_id = await self.ensure_agent()

        await self.agent_service.add_message(thread_id, prompt)
        run = await self.agent_service.create_run(thread_id, agent_id)
        logger.info(f"Запуск {run.id} создан для треда {thread_id}")
        run = await self._wait_for_run(thread_id, run, is_disconnected)

        status = run_status(run)
        if status != "completed":
            last_error = getattr(run, "last_error", None)
            reason = getattr(last_error, "message", None) if last_error else None
            logger.error(f"Запуск {run.id} для треда {thread_id} завершился со статусом {status}")
            raise RunFailed(run.id, status, reason)

        texts = await self.agent_service.get_reply_texts(thread_id, run.id)
        if self.reply_mode == "last":
            texts = texts[-1:]
        return ChatResponse(success=True, data="".join(texts), thread_id=thread_id)

    async def _wait_for_run(self, thread_id: str, run: Any,
                            is_disconnected: Optional[DisconnectCheck]) -> Any:
        deadline = self.clock() + self.timeout
        try:
            while run_status(run) in POLLED_STATUSES:
                if is_disconnected is not None and await is_disconnected():
                    logger.info(f"Клиент отключился, отменяем запуск {run.id}")
                    await self.agent_service.cancel_run(thread_id, run.id)
                    raise RunAborted(run.id)
                if self.clock() >= deadline:
                    logger.error(f"Запуск {run.id} не завершился за {self.timeout} с")
                    await self.agent_service.cancel_run(thread_id, run.id)
                    raise RunTimeout(run.id, self.timeout)
                await self.sleep(self.poll_interval)
                run = await self.agent_service.get_run(thread_id, run.id)
        except asyncio.CancelledError:
            await self.agent_service.cancel_run(thread_id, run.id)
            raise
        return run
