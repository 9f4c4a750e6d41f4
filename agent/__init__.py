# =============================================================================
# agent/__init__.py
# =============================================================================
# Demo assistant built on Google ADK.
#
# ARCHITECTURAL ROLE:
#   The agent holds no property logic.  It has a system prompt
#   (agent/prompt.py), an LLM (via LiteLlm) and one tool source: the FastMCP
#   server in tools/, which it starts over stdio.  Any other MCP client can
#   use the same server without this package.
# =============================================================================
