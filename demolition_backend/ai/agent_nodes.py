from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage

from demolition_backend.ai.errors import ConfigurationError, TransportError, UnknownError, ValidationError
from demolition_backend.ai.helpers import data_url_payload
from demolition_backend.ai.states import EstimateState
from demolition_backend.config import Settings

logger = logging.getLogger(__name__)

RequestPayload = List[Dict[str, Any]]


# -------------------------
# LLM wrappers
# -------------------------

def create_chat_model(settings: Settings) -> BaseChatModel:
    """Instantiate the configured multimodal chat model."""
    if settings.provider == "ollama":
        from langchain_ollama import ChatOllama

        return ChatOllama(model=settings.ollama_model, temperature=settings.temperature)

    from langchain_google_genai import ChatGoogleGenerativeAI

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.api_key,
        temperature=settings.temperature,
    )


def _response_text(content: Any) -> str:
    # Gemini may answer with a list of parts instead of a plain string
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for part in content:
            if isinstance(part, str):
                texts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                texts.append(part.get("text", ""))
        return "".join(texts)
    return ""


class EstimationClient:
    """
    Performs the single outbound call to the inference provider.

    One call per invocation: no retry, no caching, no streaming.
    """

    def __init__(self, settings: Settings, llm: Optional[BaseChatModel] = None):
        self.settings = settings
        self._llm = llm

    def check_credentials(self) -> None:
        if not self.settings.needs_api_key or self.settings.api_key:
            return
        if self.settings.require_api_key:
            raise ConfigurationError("missing GEMINI_API_KEY")
        logger.warning("APIキーが設定されていません。GEMINI_API_KEY is not set, calling the provider anyway.")

    async def request_estimate(self, request: RequestPayload) -> str:
        self.check_credentials()

        try:
            if self._llm is None:
                self._llm = create_chat_model(self.settings)
            response = await self._llm.ainvoke([HumanMessage(content=request)])
        except Exception as e:
            logger.error("Estimation request failed: %s", e)
            raise TransportError(str(e)) from e

        text = _response_text(getattr(response, "content", None))
        if not text.strip():
            raise UnknownError("model returned no text")
        return text


# -------------------------
# Request assembly
# -------------------------

def build_request(instruction: str, images: Sequence[Any]) -> RequestPayload:
    """
    Turn the instruction and ordered images into langchain content parts.

    The text part comes first, then one base64 image part per image in
    collection order. Pure: same input, same payload.
    """
    if not images:
        raise ValidationError("no images to send")

    parts: RequestPayload = [{"type": "text", "text": instruction}]
    for img in images:
        parts.append({
            "type": "image",
            "source_type": "base64",
            "mime_type": img.media_type,
            "data": data_url_payload(img.preview),
        })
    return parts


# -------------------------
# Graph nodes
# -------------------------

def build_request_node(state: EstimateState) -> Dict[str, Any]:
    return {"request": build_request(state["instruction"], state.get("images", []))}


@dataclass
class EstimateNode:
    client: EstimationClient

    async def __call__(self, state: EstimateState) -> Dict[str, Any]:
        """LangGraph node: sends state["request"] and stores the reply under "result_text"."""
        return {"result_text": await self.client.request_estimate(state["request"])}
