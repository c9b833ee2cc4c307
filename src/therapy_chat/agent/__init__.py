"""Agent module: prompts, LLM calls and the message pipeline."""

from .analysis import Analysis, analyze_message, parse_analysis
from .llm import AnthropicClient, LLMClient, LLMError, get_llm_client, llm_client
from .pipeline import MessagePipeline, PipelineResult
from .reply import DEFAULT_REPLY, generate_reply

__all__ = [
    "Analysis",
    "AnthropicClient",
    "DEFAULT_REPLY",
    "LLMClient",
    "LLMError",
    "MessagePipeline",
    "PipelineResult",
    "analyze_message",
    "generate_reply",
    "get_llm_client",
    "llm_client",
    "parse_analysis",
]
