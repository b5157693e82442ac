# =============================================================================
# agent/__init__.py
# =============================================================================
# This package contains the Google ADK agent configuration.
#
# ARCHITECTURAL ROLE:
#   The agent/ layer orchestrates.  It:
#     1. Receives the user's request ("How long would this test run?")
#     2. Works out which inputs are missing
#     3. Calls tools (via MCP) to compute and to record
#     4. Reports the results
#
# WHAT THE AGENT IS NOT:
#   - It is NOT the statistics (that's core/sample_size.py)
#   - It is NOT the monday.com client (that's core/monday_client.py)
#   - It is NOT the tool implementations (that's tools/)
# =============================================================================
