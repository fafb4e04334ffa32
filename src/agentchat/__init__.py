"""agentchat - agentic chat server streaming reasoning, tool calls and answers over SSE."""

__version__ = "1.0.0"
