"""Business tools: deterministic, tenant-scoped metrics runnable by name."""

from app.features.business_tools.registry import TOOLS, execute_tool, tool_names
from app.features.business_tools.service import BusinessToolsService

__all__ = ["TOOLS", "BusinessToolsService", "execute_tool", "tool_names"]
