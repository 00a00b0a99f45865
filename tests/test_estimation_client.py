from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage

from demolition_backend.ai.agent_nodes import EstimationClient, create_chat_model
from demolition_backend.ai.errors import ConfigurationError, TransportError, UnknownError
from demolition_backend.config import Settings

REQUEST = [
    {"type": "text", "text": "prompt"},
    {"type": "image", "source_type": "base64", "mime_type": "image/png", "data": "AAAA"},
]


@pytest.mark.asyncio
async def test_returns_model_text_and_sends_one_human_message(fake_llm):
    client = EstimationClient(Settings(api_key="key"), llm=fake_llm)

    text = await client.request_estimate(REQUEST)

    assert text == "解体費用は約200万円です"
    fake_llm.ainvoke.assert_awaited_once()
    (messages,), _ = fake_llm.ainvoke.call_args
    assert len(messages) == 1
    assert isinstance(messages[0], HumanMessage)
    assert messages[0].content == REQUEST


@pytest.mark.asyncio
async def test_missing_key_blocks_call_in_strict_mode(fake_llm):
    client = EstimationClient(Settings(api_key=None, require_api_key=True), llm=fake_llm)

    with pytest.raises(ConfigurationError):
        await client.request_estimate(REQUEST)
    fake_llm.ainvoke.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_key_only_warns_in_lenient_mode(fake_llm, caplog):
    client = EstimationClient(Settings(api_key=None, require_api_key=False), llm=fake_llm)

    text = await client.request_estimate(REQUEST)

    assert text == "解体費用は約200万円です"
    assert "GEMINI_API_KEY" in caplog.text


@pytest.mark.asyncio
async def test_ollama_needs_no_key(fake_llm):
    client = EstimationClient(Settings(provider="ollama", api_key=None), llm=fake_llm)
    assert await client.request_estimate(REQUEST) == "解体費用は約200万円です"


@pytest.mark.asyncio
async def test_provider_failure_becomes_transport_error():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=ConnectionError("connection reset"))
    client = EstimationClient(Settings(api_key="key"), llm=llm)

    with pytest.raises(TransportError) as excinfo:
        await client.request_estimate(REQUEST)

    assert "connection reset" in excinfo.value.user_message
    assert excinfo.value.kind == "transport"


@pytest.mark.asyncio
async def test_list_content_is_joined():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=[{"type": "text", "text": "約"}, "200万円"]))
    client = EstimationClient(Settings(api_key="key"), llm=llm)

    assert await client.request_estimate(REQUEST) == "約200万円"


@pytest.mark.asyncio
async def test_empty_reply_is_unknown_error():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=""))
    client = EstimationClient(Settings(api_key="key"), llm=llm)

    with pytest.raises(UnknownError):
        await client.request_estimate(REQUEST)


@pytest.mark.asyncio
async def test_chat_model_is_created_lazily_once(fake_llm):
    client = EstimationClient(Settings(api_key="key"))
    with patch("demolition_backend.ai.agent_nodes.create_chat_model", return_value=fake_llm) as factory:
        await client.request_estimate(REQUEST)
        await client.request_estimate(REQUEST)

    factory.assert_called_once()
    assert fake_llm.ainvoke.await_count == 2


def test_create_chat_model_selects_provider():
    gemini = create_chat_model(Settings(api_key="key", gemini_model="gemini-2.5-flash"))
    ollama = create_chat_model(Settings(provider="ollama", ollama_model="llava:13b"))

    assert type(gemini).__name__ == "ChatGoogleGenerativeAI"
    assert type(ollama).__name__ == "ChatOllama"
