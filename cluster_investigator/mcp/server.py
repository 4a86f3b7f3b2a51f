"""MCP server exposing one high-level "investigate" tool.

MCP clients ask questions rather than issuing kubectl commands, and one
investigate call yields one trace containing every LLM and tool span:

  cluster-investigator.mcp.investigate
  ├── openai.chat
  ├── kubectl_get.tool
  └── ...
"""

import logging
from typing import Any, Dict, Optional

from cluster_investigator.core.tool_registry import ToolRegistry
from cluster_investigator.observability.context_bridge import set_trace_output
from cluster_investigator.observability.request_tracing import McpToolResult, trace_mcp_request
from cluster_investigator.planner.loop import LLMGenerate, build_trace_output, default_llm_generate, run_investigation

logger = logging.getLogger(__name__)

SERVER_NAME = "cluster-investigator"
INVESTIGATE_TOOL_NAME = "investigate"

INVESTIGATE_DESCRIPTION = """Investigate a Kubernetes cluster using an AI agent.

The agent lists resources, describes them, reads container logs, and reasons
about what it finds. It may make several kubectl calls before answering.

Example questions:
- "What pods are running in the default namespace?"
- "Find the broken pod and tell me why it's failing"
- "Is my nginx deployment healthy?"
"""


async def handle_investigate(
    question: str,
    llm_generate: Optional[LLMGenerate] = None,
    registry: Optional[ToolRegistry] = None,
) -> McpToolResult:
    """
    Run one traced investigation for an MCP client.

    Returns the answer only; reasoning goes to the trace when payload capture is on.
    """
    if llm_generate is None:
        llm_generate = default_llm_generate()

    async def _run() -> McpToolResult:
        result = await run_investigation(question, llm_generate, registry)
        set_trace_output(build_trace_output(result), result.answer)
        return {
            "content": [{"type": "text", "text": result.answer}],
            "isError": result.is_error,
        }

    return await trace_mcp_request(INVESTIGATE_TOOL_NAME, {"question": question}, _run)


def create_mcp_server(llm_generate: Optional[LLMGenerate] = None) -> Any:
    """Build a FastMCP server with the investigate tool registered."""
    from mcp.server.fastmcp import FastMCP
    from mcp.types import CallToolResult, TextContent

    server = FastMCP(SERVER_NAME)

    @server.tool(name=INVESTIGATE_TOOL_NAME, description=INVESTIGATE_DESCRIPTION)
    async def investigate(question: str) -> CallToolResult:
        result: Dict[str, Any] = await handle_investigate(question, llm_generate)
        return CallToolResult(
            content=[TextContent(type="text", text=c["text"]) for c in result["content"]],
            isError=result["isError"],
        )

    logger.info("MCP server %s ready with tool %s", SERVER_NAME, INVESTIGATE_TOOL_NAME)
    return server
