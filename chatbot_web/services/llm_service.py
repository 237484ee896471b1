"""Service encapsulating interactions with the completion provider.

Uses LangChain's ChatOpenAI integration against the provider's
OpenAI-compatible endpoint.  Each call is attempted exactly once; retrying
is the client's job.  Provider failures are translated into the gateway's
error taxonomy so the endpoint never leaks provider payloads.
"""

from __future__ import annotations

from typing import Any, Optional

import openai
from loguru import logger
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from ..config.llm_config import LlmConfig, get_llm_config
from ..prompts.system import CONNECTION_CHECK_PROMPT, DEFAULT_SYSTEM_PROMPT
from ..utils.error_handler import (
    ChatError,
    GenericServerError,
    UpstreamMisconfigured,
    UpstreamRateLimited,
    UpstreamUnavailable,
)


class LLMService:
    """Service for generating completions from the upstream model.

    The service wraps :class:`~langchain_openai.ChatOpenAI` and constructs it
    from a single :class:`LlmConfig`.  Generation parameters are fixed by
    configuration (temperature 0.7, 2000 output tokens, ``top_p`` 1,
    non-streaming) and the client's built-in retries are disabled.
    """

    def __init__(
        self,
        llm_config: LlmConfig | None = None,
        *,
        llm: Any = None,
        locale: Optional[str] = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        """Initialise the service.

        Parameters
        ----------
        llm_config: LlmConfig, optional
            Credentials, endpoint and tuning parameters.  Loaded from the
            environment via :func:`get_llm_config` when omitted.
        llm: optional
            A pre-built chat model exposing ``ainvoke``.  Tests pass a fake
            here; production code lets the service build ``ChatOpenAI``.
        locale: str, optional
            Locale used for the user-facing error messages.
        """
        self.llm_config = llm_config or get_llm_config()
        self.locale = locale
        self.system_prompt = system_prompt

        self._llm_kwargs: dict[str, object] = {
            "api_key": self.llm_config.api_key,
            "model": self.llm_config.model,
            "temperature": self.llm_config.temperature,
            "max_tokens": self.llm_config.max_tokens,
            "top_p": self.llm_config.top_p,
            "timeout": self.llm_config.timeout,
            "streaming": False,
            "max_retries": 0,
        }
        if self.llm_config.base_url:
            self._llm_kwargs["base_url"] = self.llm_config.base_url

        self.llm = llm if llm is not None else ChatOpenAI(**self._llm_kwargs)

    def build_messages(self, prompt: str) -> list[BaseMessage]:
        """Return the system instruction followed by the user's prompt."""
        return [SystemMessage(content=self.system_prompt), HumanMessage(content=prompt)]

    async def complete(self, prompt: str) -> str:
        """Return the completion text for an already sanitised prompt.

        Raises
        ------
        UpstreamRateLimited
            The provider answered 429.
        UpstreamMisconfigured
            The provider rejected the credential (401).
        UpstreamUnavailable
            The provider could not be reached.
        GenericServerError
            Any other failure, including an empty completion.
        """
        logger.debug("Requesting completion for prompt: {!r}", prompt[:100])
        try:
            result = await self.llm.ainvoke(self.build_messages(prompt))
        except Exception as exc:
            raise self._translate(exc) from exc

        text = self._extract_text(result)
        if not text:
            logger.error("Provider returned an empty completion")
            raise GenericServerError(locale=self.locale)
        logger.debug("Completion received ({} characters)", len(text))
        return text

    async def check_connection(self) -> bool:
        """Send a tiny probe to the provider.

        Returns ``True`` when the provider answered with content.  A rejected
        credential raises :class:`UpstreamMisconfigured` so startup can abort;
        every other failure is logged and reported as ``False``.
        """
        logger.info("Testing upstream API connection...")
        try:
            result = await self.llm.ainvoke(
                [HumanMessage(content=CONNECTION_CHECK_PROMPT)], max_tokens=10
            )
        except Exception as exc:
            error = self._translate(exc)
            if isinstance(error, UpstreamMisconfigured):
                logger.critical("Upstream rejected the API key; check GROQ_API_KEY")
                raise error from exc
            logger.warning("Upstream connection test failed: {}", exc)
            return False

        if self._extract_text(result):
            logger.info("Upstream API connection successful")
            return True
        logger.warning("Upstream connection test returned an unexpected response")
        return False

    def _translate(self, exc: Exception) -> ChatError:
        """Map a provider exception onto the gateway's error taxonomy."""
        if isinstance(exc, ChatError):
            return exc
        if isinstance(exc, openai.APIConnectionError):
            logger.error("Upstream unreachable: {}", exc)
            return UpstreamUnavailable(locale=self.locale)
        if isinstance(exc, openai.APIStatusError):
            if exc.status_code == 429:
                logger.warning("Upstream rate limited the gateway")
                return UpstreamRateLimited(locale=self.locale)
            if exc.status_code == 401:
                logger.error("Upstream rejected credentials (401)")
                return UpstreamMisconfigured(locale=self.locale)
            logger.error("Upstream returned HTTP {}: {}", exc.status_code, exc)
            return GenericServerError(locale=self.locale)
        logger.opt(exception=exc).error("LLM generation failed")
        return GenericServerError(locale=self.locale)

    @staticmethod
    def _extract_text(result: Any) -> str:
        content = getattr(result, "content", result)
        if isinstance(content, str):
            return content.strip()
        if isinstance(content, list):
            parts = []
            for part in content:
                if isinstance(part, str):
                    parts.append(part)
                elif isinstance(part, dict) and isinstance(part.get("text"), str):
                    parts.append(part["text"])
            return "".join(parts).strip()
        return ""
