"""Agent orchestration, model streaming and tools."""
