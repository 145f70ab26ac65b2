"""
Client for the LLM that writes the fortune interpretation.

One call per fortune, no retries, no side effects besides the HTTP request.
The result is a tagged GenerationResult so callers never look at the
provider's response shape.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import httpx

from app.core import config
from app.core.prompts import PromptTemplate, get_prompt_template
from app.utils.zodiac import zodiac_sign

logger = logging.getLogger(__name__)


class GenerationFailureKind(str, Enum):
    PROVIDER_STATUS = "provider_status"
    EMPTY_RESPONSE = "empty_response"
    TIMEOUT = "timeout"
    NETWORK = "network"


@dataclass(frozen=True)
class PersonAttributes:
    name: str
    birth_date: str
    relationship_status: str
    profession: str
    gender: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    text: Optional[str] = None
    error: Optional[GenerationFailureKind] = None
    provider_status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: str) -> "GenerationResult":
        return cls(text=text)

    @classmethod
    def failure(cls, kind: GenerationFailureKind, provider_status: Optional[int] = None) -> "GenerationResult":
        return cls(error=kind, provider_status=provider_status)


def to_data_uri(photo: str) -> str:
    return photo if photo.startswith("data:") else f"data:image/jpeg;base64,{photo}"


def describe_subject(subject: PersonAttributes, template: PromptTemplate) -> str:
    lines = [
        template.subject_header,
        f"- Name: {subject.name}",
        f"- Birth date: {subject.birth_date}",
    ]
    sign = zodiac_sign(subject.birth_date)
    if sign:
        lines.append(f"- Zodiac sign: {sign}")
    if subject.gender:
        lines.append(f"- Gender: {subject.gender}")
    lines.append(f"- Relationship status: {subject.relationship_status}")
    lines.append(f"- Profession: {subject.profession}")
    return "\n".join(lines)


def build_messages(photos: List[str], subject: PersonAttributes, template: PromptTemplate) -> list:
    user_content = [
        {
            "type": "text",
            "text": f"{describe_subject(subject, template)}\n\n{template.instructions}",
        }
    ]
    for photo in photos:
        user_content.append({"type": "image_url", "image_url": {"url": to_data_uri(photo)}})

    return [
        {"role": "system", "content": template.persona},
        {"role": "user", "content": user_content},
    ]


class InterpretationClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        template: Optional[PromptTemplate] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else config.OPENAI_API_KEY
        self.api_url = api_url or config.OPENAI_API_URL
        self.model = model or config.OPENAI_MODEL
        self.max_tokens = max_tokens or config.OPENAI_MAX_TOKENS
        self.timeout = timeout or config.OPENAI_TIMEOUT_SECONDS
        self.template = template or get_prompt_template()
        self._transport = transport

    def build_payload(self, photos: List[str], subject: PersonAttributes) -> dict:
        return {
            "model": self.model,
            "messages": build_messages(photos, subject, self.template),
            "max_tokens": self.max_tokens,
        }

    def generate(self, photos: List[str], subject: PersonAttributes) -> GenerationResult:
        payload = self.build_payload(photos, subject)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        logger.info("[LLM] Generating fortune for %s with %d photo(s), template %s",
                    subject.name, len(photos), self.template.version)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                r = client.post(self.api_url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.error("[LLM] Timeout calling provider: %s", e)
            return GenerationResult.failure(GenerationFailureKind.TIMEOUT)
        except httpx.RequestError as e:
            logger.error("[LLM] Request to provider failed: %s", e)
            return GenerationResult.failure(GenerationFailureKind.NETWORK)

        if r.status_code != 200:
            # Provider body is logged, never returned to the client
            logger.error("[LLM] Provider returned %s: %s", r.status_code, r.text[:500] if r.text else "NO_BODY")
            return GenerationResult.failure(GenerationFailureKind.PROVIDER_STATUS, provider_status=r.status_code)

        try:
            data = r.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content.strip():
            logger.error("[LLM] Provider response had no interpretation text")
            return GenerationResult.failure(GenerationFailureKind.EMPTY_RESPONSE)

        logger.info("[LLM] Fortune generated for %s (%d chars)", subject.name, len(content))
        return GenerationResult.success(content.strip())


def get_interpretation_client() -> InterpretationClient:
    """FastAPI dependency; overridden in tests."""
    return InterpretationClient()
