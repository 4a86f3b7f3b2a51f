"""Read-only kubectl tools the investigator agent can call.

Each tool validates its arguments with a pydantic model and returns
``{"output": str, "isError": bool}``. A failing kubectl command (non-zero exit,
timeout, missing binary) is reported through ``isError`` rather than raised:
the tool worked, the cluster answer was unhealthy.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field, ValidationError

from cluster_investigator.core.exceptions import ToolError

logger = logging.getLogger(__name__)

MAX_OUTPUT_CHARS = 20_000


async def run_kubectl(args: List[str], timeout: Optional[float] = None) -> Dict[str, Any]:
    """Run kubectl with the given arguments and capture combined output."""
    from cluster_investigator.core.config import settings

    timeout = timeout if timeout is not None else float(settings.kubectl_timeout_seconds)
    command = [settings.kubectl_path, *args]
    logger.debug("Running %s", " ".join(command))
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        return {"output": f"kubectl not found at '{settings.kubectl_path}'", "isError": True}

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        return {"output": f"kubectl timed out after {timeout:g}s", "isError": True}

    if proc.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip() or f"exit code {proc.returncode}"
        return {"output": f"Error: {message}", "isError": True}

    output = stdout.decode("utf-8", errors="replace")
    if len(output) > MAX_OUTPUT_CHARS:
        output = output[:MAX_OUTPUT_CHARS] + "\n... (truncated)"
    return {"output": output, "isError": False}


class KubectlGetInput(BaseModel):
    resource: str = Field(description="Resource type to list, e.g. pods, deployments, nodes")
    namespace: Optional[str] = Field(
        default=None, description="Namespace to query; omit for the current namespace"
    )
    name: Optional[str] = Field(default=None, description="Specific resource name")
    all_namespaces: bool = Field(default=False, description="List across all namespaces")


class KubectlDescribeInput(BaseModel):
    resource: str = Field(description="Resource type, e.g. pod, deployment, node")
    name: str = Field(description="Name of the resource to describe")
    namespace: Optional[str] = Field(default=None, description="Namespace of the resource")


class KubectlLogsInput(BaseModel):
    pod: str = Field(description="Pod name")
    namespace: Optional[str] = Field(default=None, description="Namespace of the pod")
    container: Optional[str] = Field(default=None, description="Container name for multi-container pods")
    tail: int = Field(default=100, ge=1, le=5000, description="Number of most recent lines")
    previous: bool = Field(default=False, description="Logs of the previous (crashed) container")


class AgentTool(ABC):
    """Base class for investigator tools."""

    input_model: Type[BaseModel]

    def __init__(self, name: str, description: str):
        """
        Initialize tool.

        Args:
            name: Tool name as the LLM sees it
            description: Tool description shown to the LLM
        """
        self.name = name
        self.description = description

    def parameters_schema(self) -> Dict[str, Any]:
        """JSON Schema of the tool arguments."""
        return self.input_model.model_json_schema()

    def parse_params(self, params: Dict[str, Any]) -> BaseModel:
        """
        Validate tool parameters.

        Raises:
            ToolError: If the parameters do not match the input model
        """
        try:
            return self.input_model.model_validate(params or {})
        except ValidationError as e:
            raise ToolError(
                f"Invalid arguments for {self.name}: {e.errors(include_url=False)}",
                tool_name=self.name,
            ) from e

    async def __call__(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.execute(self.parse_params(params))

    @abstractmethod
    async def execute(self, params: Any) -> Dict[str, Any]:
        """Execute the tool with validated parameters."""


class KubectlGetTool(AgentTool):
    """List Kubernetes resources."""

    input_model = KubectlGetInput

    def __init__(self):
        super().__init__(
            name="kubectl_get",
            description=(
                "List Kubernetes resources in table form (kubectl get). "
                "Use it first to see what exists and spot unhealthy status columns."
            ),
        )

    async def execute(self, params: KubectlGetInput) -> Dict[str, Any]:
        args = ["get", params.resource]
        if params.name:
            args.append(params.name)
        if params.all_namespaces:
            args.append("--all-namespaces")
        elif params.namespace:
            args.extend(["-n", params.namespace])
        return await run_kubectl(args)


class KubectlDescribeTool(AgentTool):
    """Describe one Kubernetes resource."""

    input_model = KubectlDescribeInput

    def __init__(self):
        super().__init__(
            name="kubectl_describe",
            description=(
                "Show detailed state and recent events for one resource (kubectl describe). "
                "Use it to find why a pod is pending, crashing or not ready."
            ),
        )

    async def execute(self, params: KubectlDescribeInput) -> Dict[str, Any]:
        args = ["describe", params.resource, params.name]
        if params.namespace:
            args.extend(["-n", params.namespace])
        return await run_kubectl(args)


class KubectlLogsTool(AgentTool):
    """Read container logs."""

    input_model = KubectlLogsInput

    def __init__(self):
        super().__init__(
            name="kubectl_logs",
            description=(
                "Read recent container logs from a pod (kubectl logs). "
                "Set previous=true to read logs of a container that crashed and restarted."
            ),
        )

    async def execute(self, params: KubectlLogsInput) -> Dict[str, Any]:
        args = ["logs", params.pod, f"--tail={params.tail}"]
        if params.namespace:
            args.extend(["-n", params.namespace])
        if params.container:
            args.extend(["-c", params.container])
        if params.previous:
            args.append("--previous")
        return await run_kubectl(args)
