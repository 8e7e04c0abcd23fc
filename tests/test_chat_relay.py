import pytest
from azure.ai.agents.models import RunStatus

from errors import (
    BackendError,
    BackendNotConfigured,
    InvalidArgument,
    RunAborted,
    RunFailed,
    RunTimeout,
    ThreadNotFound,
)
from services.chat_relay import ChatRelay


@pytest.mark.asyncio
@pytest.mark.parametrize("prompt", [None, "", "   ", "\n\t"])
async def test_blank_prompt_is_rejected_without_external_calls(relay, agent_service, prompt) -> None:
    with pytest.raises(InvalidArgument):
        await relay.submit_prompt(prompt, caller="alice")

    assert agent_service.calls == []


@pytest.mark.asyncio
async def test_completed_run_returns_agent_text(relay) -> None:
    response = await relay.submit_prompt("Hello", caller="alice")

    assert response.success is True
    assert response.data == "Hi there"
    assert response.thread_id == "thread_1"


@pytest.mark.asyncio
async def test_poll_loop_checks_status_until_terminal(relay, agent_service, clock) -> None:
    agent_service.statuses = ["queued", "in_progress", "in_progress", "completed"]

    await relay.submit_prompt("Hello", caller="alice")

    assert agent_service.count("get_run") == 3
    assert clock.sleeps == [0.5, 0.5, 0.5]
    names = [call[0] for call in agent_service.calls]
    assert names.index("get_reply_texts") > max(
        i for i, name in enumerate(names) if name == "get_run"
    )


@pytest.mark.asyncio
async def test_requires_action_keeps_polling(relay, agent_service) -> None:
    agent_service.statuses = ["queued", "requires_action", "completed"]

    response = await relay.submit_prompt("Hello", caller="alice")

    assert response.data == "Hi there"
    assert agent_service.count("get_run") == 2


@pytest.mark.asyncio
async def test_failed_run_is_reported_instead_of_stale_text(relay, agent_service) -> None:
    agent_service.statuses = ["queued", "failed"]
    agent_service.run_error = "rate limit"

    with pytest.raises(RunFailed) as excinfo:
        await relay.submit_prompt("Hello", caller="alice")

    assert excinfo.value.status == "failed"
    assert excinfo.value.reason == "rate limit"
    assert agent_service.count("get_reply_texts") == 0


@pytest.mark.asyncio
async def test_stuck_run_times_out_and_is_cancelled(relay, agent_service, clock) -> None:
    relay.timeout = 1.0
    agent_service.statuses = ["in_progress"]

    with pytest.raises(RunTimeout):
        await relay.submit_prompt("Hello", caller="alice")

    assert clock.sleeps == [0.5, 0.5]
    assert agent_service.count("cancel_run") == 1


@pytest.mark.asyncio
async def test_disconnected_caller_aborts_poll_loop(relay, agent_service) -> None:
    agent_service.statuses = ["queued", "in_progress"]
    checks = []

    async def _is_disconnected() -> bool:
        checks.append(True)
        return len(checks) > 2

    with pytest.raises(RunAborted):
        await relay.submit_prompt("Hello", caller="alice", is_disconnected=_is_disconnected)

    assert agent_service.count("cancel_run") == 1
    assert agent_service.count("get_reply_texts") == 0


@pytest.mark.asyncio
async def test_agent_is_provisioned_once(relay, agent_service) -> None:
    await relay.submit_prompt("one", caller="alice")
    await relay.submit_prompt("two", caller="alice")

    assert agent_service.count("create_agent") == 1
    run_agents = {call[2] for call in agent_service.calls if call[0] == "create_run"}
    assert run_agents == {"asst_1"}


@pytest.mark.asyncio
async def test_configured_agent_id_is_used_without_creation(relay, agent_service) -> None:
    relay.agent_id = "asst_existing"

    await relay.submit_prompt("Hello", caller="alice")

    assert agent_service.count("create_agent") == 0
    assert ("create_run", "thread_1", "asst_existing") in agent_service.calls


@pytest.mark.asyncio
async def test_all_reply_texts_are_concatenated(relay, agent_service) -> None:
    agent_service.replies = ["Hello, ", "world"]

    response = await relay.submit_prompt("Hi", caller="alice")

    assert response.data == "Hello, world"


@pytest.mark.asyncio
async def test_last_reply_mode_keeps_only_last_text(relay, agent_service) -> None:
    relay.reply_mode = "last"
    agent_service.replies = ["draft", "final"]

    response = await relay.submit_prompt("Hi", caller="alice")

    assert response.data == "final"


@pytest.mark.asyncio
async def test_owned_thread_is_reused(relay, agent_service) -> None:
    thread_id = await relay.create_thread("alice")

    response = await relay.submit_prompt("Hello", thread_id=thread_id, caller="alice")

    assert response.thread_id == thread_id
    assert agent_service.count("create_thread") == 1


@pytest.mark.asyncio
async def test_foreign_thread_is_rejected_before_any_call(relay, agent_service) -> None:
    thread_id = await relay.create_thread("alice")
    agent_service.calls.clear()

    with pytest.raises(ThreadNotFound):
        await relay.submit_prompt("Hello", thread_id=thread_id, caller="mallory")

    assert agent_service.calls == []


@pytest.mark.asyncio
async def test_unknown_thread_is_rejected(relay, agent_service) -> None:
    with pytest.raises(ThreadNotFound):
        await relay.submit_prompt("Hello", thread_id="thread_elsewhere", caller="alice")

    assert agent_service.calls == []


@pytest.mark.asyncio
async def test_create_thread_twice_gives_distinct_ids(relay) -> None:
    first = await relay.create_thread("alice")
    second = await relay.create_thread("alice")

    assert first != second


@pytest.mark.asyncio
async def test_same_prompt_in_two_threads_stays_separate(relay, agent_service) -> None:
    first = await relay.submit_prompt("Hello", caller="alice")
    second = await relay.submit_prompt("Hello", caller="alice")

    assert first.thread_id != second.thread_id
    messages = [call[1] for call in agent_service.calls if call[0] == "add_message"]
    assert messages == [first.thread_id, second.thread_id]


@pytest.mark.asyncio
async def test_backend_error_propagates(relay, agent_service) -> None:
    agent_service.fail_with = BackendError(500, '{"error":"oops"}')

    with pytest.raises(BackendError) as excinfo:
        await relay.submit_prompt("Hello", caller="alice")

    assert excinfo.value.body == '{"error":"oops"}'


@pytest.mark.asyncio
async def test_agents_backend_without_service_is_not_configured() -> None:
    relay = ChatRelay(backend="agents")

    with pytest.raises(BackendNotConfigured):
        await relay.submit_prompt("Hello", caller="alice")


@pytest.mark.asyncio
async def test_endpoint_backend_has_no_threads() -> None:
    relay = ChatRelay(backend="endpoint")

    with pytest.raises(InvalidArgument):
        await relay.create_thread("alice")
    with pytest.raises(InvalidArgument):
        await relay.submit_prompt("Hello", thread_id="thread_1", caller="alice")


@pytest.mark.asyncio
async def test_enum_statuses_are_normalised(relay, agent_service) -> None:
    agent_service.statuses = [RunStatus.QUEUED, RunStatus.IN_PROGRESS, RunStatus.FAILED]

    with pytest.raises(RunFailed) as excinfo:
        await relay.submit_prompt("Hello", caller="alice")

    assert excinfo.value.status == "failed"
    assert "RunStatus" not in str(excinfo.value)
