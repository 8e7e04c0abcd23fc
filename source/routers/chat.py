"""
API роутеры чата: отправка промпта и создание тредов.
"""
from fastapi import APIRouter, Body, Depends, Request
import logging
from typing import Optional

from schemas import ChatResponse, ThreadResponse
from services.chat_relay import ChatRelay
from security import get_api_key, get_caller

router = APIRouter(prefix="/Chat", tags=["chat"], dependencies=[Depends(get_api_key)])
logger = logging.getLogger(__name__)

# Зависимость для получения ретранслятора
def get_chat_relay():
    from main import chat_relay
    return chat_relay

@router.post("/Completions", response_model=ChatResponse, response_model_exclude_none=True)
async def completions(
    request: Request,
    prompt: Optional[str] = Body(None),
    relay: ChatRelay = Depends(get_chat_relay),
    caller: str = Depends(get_caller),
):
    """
    Отправка промпта в новый тред.
    """
    return await relay.submit_prompt(prompt, caller=caller, is_disconnected=request.is_disconnected)

@router.post("/Completions/{thread_id}", response_model=ChatResponse, response_model_exclude_none=True)
async def thread_completions(
    thread_id: str,
    request: Request,
    prompt: Optional[str] = Body(None),
    relay: ChatRelay = Depends(get_chat_relay),
    caller: str = Depends(get_caller),
):
    """
    Отправка промпта в существующий тред вызывающего.
    """
    return await relay.submit_prompt(
        prompt, thread_id=thread_id, caller=caller, is_disconnected=request.is_disconnected
    )

@router.post("/Threads", response_model=ThreadResponse)
async def create_thread(
    relay: ChatRelay = Depends(get_chat_relay),
    caller: str = Depends(get_caller),
):
    """
    Создание нового треда.
    """
    thread_id = await relay.create_thread(caller)
    return {"id": thread_id}
