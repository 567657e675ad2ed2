"""Text-generation oracle.

Every completion the pipeline needs (tags, author bios, author
extraction) goes through :class:`TextOracle`. The production oracle,
:class:`ClaudeOracle`, reaches Claude through the first backend that is
available:

1. Anthropic Messages API, when an API key is configured or in the environment
2. Claude Agent SDK, when the optional ``agent`` extra is installed
3. ``claude -p`` subprocess, always last, or the only backend with ``use_cli``

All backend failures surface as :class:`LLMError`.
"""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import anthropic

from docreader.config import DEFAULT_MODEL

if TYPE_CHECKING:
    from docreader.config import ClaudeConfig

logger = logging.getLogger(__name__)

try:
    from claude_agent_sdk import (
        AssistantMessage as _AssistantMessage,
        ClaudeAgentOptions as _AgentOptions,
        TextBlock as _TextBlock,
    )
    from claude_agent_sdk import query as _agent_query

    _HAS_AGENT_SDK = True
except ImportError:
    _HAS_AGENT_SDK = False

MODEL_ALIASES: dict[str, str] = {
    "sonnet": "claude-sonnet-4-5-20250929",
    "haiku": "claude-haiku-4-5-20251001",
    "opus": "claude-opus-4-1-20250805",
}

CLI_COMMAND = ["claude", "-p"]
MAX_STDERR_CHARS = 500


class LLMError(Exception):
    """A completion could not be produced."""


def _resolve_model(model: str | None) -> str:
    """Map ``sonnet``/``haiku``/``opus`` to full model IDs; pass others through."""
    if model is None:
        return DEFAULT_MODEL
    return MODEL_ALIASES.get(model, model)


def _resolve_api_key(api_key: str | None) -> str:
    return (api_key or os.environ.get("ANTHROPIC_API_KEY", "")).strip()


def _split_prompts(system_prompt: str, user_prompt: str) -> tuple[str, str]:
    # A lone prompt is sent as the user turn.
    if user_prompt.strip():
        return system_prompt, user_prompt
    return "", system_prompt


def _joined_text(parts: Iterable[str], backend: str, label: str) -> str:
    text = "".join(parts).strip()
    if not text:
        raise LLMError(f"{backend} returned empty response (label={label})")
    return text


def _call_anthropic_api(
    system_prompt: str,
    user_prompt: str,
    *,
    api_key: str,
    model: str | None,
    max_tokens: int,
    timeout: int,
    label: str,
) -> str:
    system, user = _split_prompts(system_prompt, user_prompt)
    request: dict[str, object] = {
        "model": _resolve_model(model),
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": user}],
    }
    if system.strip():
        request["system"] = system

    logger.debug("Anthropic API request model=%s (%s)", request["model"], label)
    client = anthropic.Anthropic(api_key=api_key, timeout=timeout)
    try:
        response = client.messages.create(**request)  # type: ignore[arg-type]
    except anthropic.AuthenticationError as exc:
        raise LLMError(f"Anthropic API rejected the key (label={label}): {exc}") from exc
    except anthropic.APIError as exc:
        raise LLMError(f"Anthropic API failed (label={label}): {exc}") from exc

    return _joined_text(
        (block.text for block in response.content if block.type == "text"),
        "Anthropic API",
        label,
    )


async def _query_agent_sdk(system_prompt: str, user_prompt: str, model: str | None) -> list[str]:
    system, user = _split_prompts(system_prompt, user_prompt)
    options = _AgentOptions(
        system_prompt=system or None,
        model=model,
        max_turns=1,
        allowed_tools=[],
        permission_mode="bypassPermissions",
    )
    parts: list[str] = []
    async for message in _agent_query(prompt=user, options=options):
        if isinstance(message, _AssistantMessage):
            parts.extend(block.text for block in message.content if isinstance(block, _TextBlock))
    return parts


def _call_agent_sdk(system_prompt: str, user_prompt: str, *, model: str | None, label: str) -> str:
    logger.debug("Agent SDK request (%s)", label)
    try:
        parts = asyncio.run(_query_agent_sdk(system_prompt, user_prompt, model))
    except Exception as exc:
        raise LLMError(f"Agent SDK failed (label={label}): {exc}") from exc
    return _joined_text(parts, "Agent SDK", label)


def _call_subprocess(
    system_prompt: str,
    user_prompt: str,
    *,
    model: str | None,
    timeout: int,
    label: str,
) -> str:
    cmd = [*CLI_COMMAND, "--model", model] if model else list(CLI_COMMAND)
    # CLAUDECODE makes a nested `claude` refuse to start.
    env = {key: value for key, value in os.environ.items() if key != "CLAUDECODE"}

    logger.debug("Claude CLI request (%s)", label)
    try:
        completed = subprocess.run(
            cmd,
            input=f"{system_prompt}\n\n{user_prompt}".strip(),
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
    except FileNotFoundError as exc:
        raise LLMError(f"Claude CLI not found, is 'claude' on the PATH? (label={label})") from exc
    except subprocess.TimeoutExpired as exc:
        raise LLMError(f"Claude CLI timed out after {timeout}s (label={label})") from exc

    if completed.returncode != 0:
        raise LLMError(
            f"Claude CLI failed (exit {completed.returncode}, label={label}): "
            f"{completed.stderr[:MAX_STDERR_CHARS]}"
        )
    return _joined_text([completed.stdout], "Claude CLI", label)


def call_claude(
    system_prompt: str,
    user_prompt: str,
    *,
    api_key: str | None = None,
    model: str | None = None,
    max_tokens: int = 1024,
    timeout: int = 120,
    use_cli: bool = False,
    label: str = "oracle",
) -> str:
    """Return Claude's completion, trying the API, then the Agent SDK, then the CLI.

    ``use_cli`` goes straight to the CLI. ``label`` names the caller in
    log lines and error messages.

    Raises:
        LLMError: On any failure of the chosen backend.
    """
    if not use_cli:
        key = _resolve_api_key(api_key)
        if key:
            return _call_anthropic_api(
                system_prompt,
                user_prompt,
                api_key=key,
                model=model,
                max_tokens=max_tokens,
                timeout=timeout,
                label=label,
            )
        if _HAS_AGENT_SDK:
            return _call_agent_sdk(system_prompt, user_prompt, model=model, label=label)

    return _call_subprocess(system_prompt, user_prompt, model=model, timeout=timeout, label=label)


@runtime_checkable
class TextOracle(Protocol):
    """Prompt-in, completion-out text generation capability."""

    def is_configured(self) -> bool:
        """Whether the oracle can be called at all."""
        ...

    def generate(self, prompt: str, *, label: str = "oracle") -> str:
        """Return a completion for ``prompt``; raise :class:`LLMError` on failure."""
        ...


class ClaudeOracle:
    """:class:`TextOracle` over :func:`call_claude`, driven by the ``[claude]`` config."""

    def __init__(self, config: ClaudeConfig) -> None:
        self._config = config

    def update_settings(self, config: ClaudeConfig) -> None:
        self._config = config

    def is_configured(self) -> bool:
        return bool(_resolve_api_key(self._config.api_key)) or self._config.use_cli

    def generate(self, prompt: str, *, label: str = "oracle") -> str:
        if not self.is_configured():
            raise LLMError(
                "Claude API key is not configured. Set ANTHROPIC_API_KEY or "
                "[claude] api_key in .docreader.toml."
            )
        return call_claude(
            prompt,
            "",
            api_key=self._config.api_key,
            model=self._config.model,
            max_tokens=self._config.max_tokens,
            timeout=self._config.timeout,
            use_cli=self._config.use_cli,
            label=label,
        )
