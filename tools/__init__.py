# =============================================================================
# tools/__init__.py
# =============================================================================
# FastMCP tool wrappers.
#
# ARCHITECTURAL ROLE:
#   tools/ translates between MCP and core/.  Each tool:
#     1. Declares typed, constrained parameters (FastMCP publishes them as
#        the tool's JSON schema and rejects invalid calls)
#     2. Awaits one core/ coroutine
#     3. Serializes the result (dict for resolve_address, text for reports)
#     4. Converts core errors into ToolError results
#
#   Tools carry no Portland-specific logic of their own.  The docstrings
#   matter: the assistant reads them to decide which tool to call.
# =============================================================================
