# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool wrappers.
#
# ARCHITECTURAL ROLE:
#   tools/ is the "translation layer" between the agent framework and the
#   core logic.  Each tool:
#     1. Imports a function from core/
#     2. Wraps it in a FastMCP tool decorator
#     3. Returns a plain dict ({"success": ..., "data"/"message": ...})
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT contain business logic (that's in core/)
#   - They do NOT decide what to do next (that's the agent's job)
#   - They do NOT know about Google ADK
#
# TOOL CONTRACT QUALITY:
#   The LLM reads each tool's name, docstring and typed parameters to
#   decide when and how to call it, so those are written for the LLM.
# =============================================================================
