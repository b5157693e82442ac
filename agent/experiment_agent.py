# =============================================================================
# agent/experiment_agent.py  —  Google ADK Agent Configuration
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Configures and creates the Google ADK agent: the coordinator that
#   receives user requests, calls the MCP tools, and reports back.
#
# ADK + LiteLlm:
#   Google ADK is the AGENT FRAMEWORK (orchestration, tool calling,
#   sessions).  The LLM is reached through ADK's LiteLlm wrapper, so any
#   provider LiteLlm supports works.  The model string comes from AGENT_MODEL
#   and defaults to GPT-4o via OpenRouter (LiteLlm reads OPENROUTER_API_KEY
#   from the environment).
#
#                 ┌──────────────────────────────┐
#                 │        Google ADK Agent       │
#                 │  prompt ─▶ LLM ─▶ MCP tools   │
#                 └──────────────────────────────┘
#                                │ stdio
#                                ▼
#                 ┌──────────────────────────────┐
#                 │  FastMCP server               │
#                 │  (tools/mcp_server.py)        │
#                 │  • calculate_sample_size      │
#                 │  • monday_* board tools       │
#                 └──────────────────────────────┘
#                                │
#                                ▼
#                 ┌──────────────────────────────┐
#                 │  core/ (pure Python + HTTP)   │
#                 └──────────────────────────────┘
#
# MCP CONNECTION:
#   ADK starts the FastMCP server as a subprocess and talks to it over
#   stdin/stdout.  The tools are discovered automatically.
# =============================================================================

import os

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_experiment_assistant_prompt

DEFAULT_MODEL = "openrouter/openai/gpt-4o"


def mcp_server_path() -> str:
    """Absolute path of tools/mcp_server.py, wherever we are run from."""
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(project_root, "tools", "mcp_server.py")


def create_agent() -> Agent:
    """Create the experimentation assistant agent.

    The agent has no business logic of its own: a system prompt, a model,
    and one MCP toolset.
    """
    # "uv run" makes the subprocess use the project's .venv, where fastmcp
    # and core/ are installed.
    mcp_tools = MCPToolset(
        connection_params=StdioServerParameters(
            command="uv",
            args=["run", "python", mcp_server_path()],
        ),
    )

    agent = Agent(
        name="experiment_assistant",
        model=LiteLlm(model=os.environ.get("AGENT_MODEL", DEFAULT_MODEL)),
        instruction=get_experiment_assistant_prompt(),
        tools=[mcp_tools],
    )

    return agent
