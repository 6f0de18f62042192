"""Retailer assistant: intent routing, tool execution and reply synthesis."""

from app.features.assistant.intent import classify_intent, fallback_intent
from app.features.assistant.service import AssistantService
from app.features.assistant.synthesizer import format_tool_results, synthesize_response

__all__ = [
    "AssistantService",
    "classify_intent",
    "fallback_intent",
    "format_tool_results",
    "synthesize_response",
]
