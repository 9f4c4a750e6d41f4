# =============================================================================
# agent/portland_agent.py  -  Google ADK Agent wired to the Portland Maps tools
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Builds the demo assistant: an ADK Agent whose only capabilities are the
#   MCP tools in tools/mcp_server.py.
#
#   ┌──────────────────────────┐        stdio        ┌─────────────────────┐
#   │  ADK Agent               │ ──────────────────▶ │ FastMCP server      │
#   │  (LLM via LiteLlm)       │ ◀────────────────── │ tools/mcp_server.py │
#   └──────────────────────────┘                     └─────────────────────┘
#                                                              │
#                                                              ▼
#                                                    core/ (httpx → portlandmaps)
#
# MODEL:
#   The model string goes through LiteLlm, so any provider it supports works.
#   Default: "openrouter/openai/gpt-4o" (reads OPENROUTER_API_KEY).
#   Override with PORTLAND_AGENT_MODEL.
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_property_assistant_prompt

DEFAULT_MODEL = "openrouter/openai/gpt-4o"


def create_agent() -> Agent:
    """Create the Portland property assistant agent.

    The MCP server is started as a subprocess with the same interpreter
    running this process (``python -m tools.mcp_server``) from the project
    root, so it sees the same installed dependencies.

    Returns:
        A configured Google ADK Agent instance.
    """
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    mcp_tools = MCPToolset(
        connection_params=StdioServerParameters(
            command=sys.executable,
            args=["-m", "tools.mcp_server"],
            cwd=project_root,
        ),
    )

    model_name = os.environ.get("PORTLAND_AGENT_MODEL", DEFAULT_MODEL)

    return Agent(
        name="portland_property_assistant",
        model=LiteLlm(model=model_name),
        instruction=get_property_assistant_prompt(),
        tools=[mcp_tools],
    )
