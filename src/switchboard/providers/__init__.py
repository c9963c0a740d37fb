"""Provider executors for Switchboard.

Executors are looked up by Provider id. LiteLLMExecutor serves the vendor
LLM providers; HTTPAgentExecutor serves in-house iris-custom agents.
"""

from switchboard.providers.base import (
    ExecutionContext,
    ExecutionOutput,
    Priority,
    Provider,
    ProviderExecutor,
)
from switchboard.providers.http_agent import HTTPAgentExecutor
from switchboard.providers.litellm_executor import LiteLLMExecutor
from switchboard.providers.prompts import build_system_prompt

__all__ = [
    "Provider",
    "Priority",
    "ExecutionContext",
    "ExecutionOutput",
    "ProviderExecutor",
    "LiteLLMExecutor",
    "HTTPAgentExecutor",
    "build_system_prompt",
]
