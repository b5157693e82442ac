# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL business logic for the experiment tools:
#   - the sample-size estimator and the test-duration planner
#   - the monday.com board client and its column-value formatting
#   - the research-record transformer
#   - settings storage and lifecycle hooks
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports Google ADK, FastMCP, or any orchestration
#   framework.  The estimator and the formatters are importable in a bare
#   Python REPL with no network access.  Only monday_client.py talks to the
#   outside world, and only when one of its methods is called.
# =============================================================================
