"""Simulated conversations."""

from moltmatch.chat.simulator import AGENT_REPLIES, ConversationSimulator

__all__ = ["AGENT_REPLIES", "ConversationSimulator"]
