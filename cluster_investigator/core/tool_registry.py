"""Registry for managing agent tools."""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from cluster_investigator.core.tools import AgentTool

ToolHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class ToolRegistry:
    """Registry for managing and retrieving tools."""

    def __init__(self):
        """Initialize the tool registry."""
        self._tools: Dict[str, AgentTool] = {}
        self._traced: Dict[str, ToolHandler] = {}

    def register(self, tool: AgentTool) -> None:
        """
        Register a tool in the registry.

        Args:
            tool: Tool instance to register
        """
        if not tool or not tool.name:
            raise ValueError("Tool must have a valid name")

        self._tools[tool.name] = tool
        self._traced.pop(tool.name, None)

    def get(self, name: str) -> Optional[AgentTool]:
        """
        Retrieve a tool by name.

        Args:
            name: Name of the tool

        Returns:
            Tool instance if found, None otherwise
        """
        return self._tools.get(name)

    def get_all(self) -> List[AgentTool]:
        """Retrieve all registered tools."""
        return list(self._tools.values())

    def list_tools(self) -> List[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def get_traced_handler(self, name: str) -> Optional[ToolHandler]:
        """
        Return the tool wrapped with tool-invocation tracing.

        Wrappers are built once per tool and reused across invocations.
        """
        tool = self.get(name)
        if tool is None:
            return None
        if name not in self._traced:
            from cluster_investigator.observability.tool_tracing import ToolTracingConfig, with_tool_tracing

            self._traced[name] = with_tool_tracing(
                ToolTracingConfig(name=tool.name, description=tool.description), tool
            )
        return self._traced[name]

    def get_definitions(self) -> List[Dict[str, Any]]:
        """
        Describe every tool as {"name", "description", "inputSchema"}.

        Used for the planner prompt and for the gen_ai.tool.definitions span attribute.
        """
        return [
            {
                "name": t.name,
                "description": t.description,
                "inputSchema": t.parameters_schema(),
            }
            for t in self.get_all()
        ]


def tools_to_openai_schema(tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Convert tool definitions to the OpenAI function-tool format.
    Each definition has: name, description, inputSchema.
    """
    return [
        {
            "type": "function",
            "function": {
                "name": t.get("name", ""),
                "description": (t.get("description") or "")[:512],
                "parameters": t.get("inputSchema") or {"type": "object", "properties": {}},
            },
        }
        for t in tools
    ]


# Global tool registry instance
_tool_registry: Optional[ToolRegistry] = None


def get_tool_registry() -> ToolRegistry:
    """Get the global tool registry instance."""
    global _tool_registry
    if _tool_registry is None:
        _tool_registry = ToolRegistry()
        # Register default tools
        from cluster_investigator.core.tools import KubectlDescribeTool, KubectlGetTool, KubectlLogsTool

        _tool_registry.register(KubectlGetTool())
        _tool_registry.register(KubectlDescribeTool())
        _tool_registry.register(KubectlLogsTool())
    return _tool_registry
