"""
Investigation loop: given a question and the kubectl tools, prompt the LLM for the
next action (tool call or FINISH); execute the tool, append the result to the
context, repeat until FINISH or max steps.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from cluster_investigator.core.config import settings
from cluster_investigator.core.tool_registry import ToolRegistry, get_tool_registry
from cluster_investigator.observability.context_bridge import set_trace_output
from cluster_investigator.observability.request_tracing import trace_investigation

logger = logging.getLogger(__name__)

LLMGenerate = Callable[[str, Optional[str]], Awaitable[str]]

MAX_RESULT_CHARS_IN_CONTEXT = 3000

SYSTEM_PROMPT = """You are a Kubernetes investigator. You answer questions about a cluster
by running read-only kubectl tools, reading what they return, and reasoning about it.

Available tools (name: description):
{tools}

Tool argument schemas:
{schemas}

Respond with exactly one JSON object, no other text. Choose one:
1. To call a tool: {{"action": "tool_call", "thought": "<why>", "tool_name": "<name>", "arguments": {{...}}}}
2. To finish: {{"action": "finish", "thought": "<why>", "answer": "<final answer to the user>"}}
"""


@dataclass
class InvestigationResult:
    """Outcome of one investigation."""

    answer: str
    thinking: List[str] = field(default_factory=list)
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    is_error: bool = False


def _format_tools_for_prompt(tools: List[Dict[str, Any]]) -> str:
    """Format tools as text for the planner prompt."""
    if not tools:
        return "No tools available."
    return "\n".join(f"- {t['name']}: {t.get('description', '')}" for t in tools)


def _format_schemas_for_prompt(tools: List[Dict[str, Any]]) -> str:
    return "\n".join(
        f"- {t['name']}: {json.dumps(t.get('inputSchema') or {}, separators=(',', ':'))}" for t in tools
    )


def _parse_planner_response(response: str) -> Optional[Dict[str, Any]]:
    """
    Parse LLM output for either tool_call or finish.
    Expected JSON block: {"action": "tool_call", "tool_name": "...", "arguments": {...}}
    or {"action": "finish", "answer": "..."}
    """
    response = response.strip()
    match = re.search(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}", response, re.DOTALL)
    if match:
        try:
            data = json.loads(match.group(0))
            action = data.get("action")
            thought = data.get("thought") or ""
            if action == "tool_call":
                tool_name = data.get("tool_name")
                arguments = data.get("arguments") or {}
                if tool_name and isinstance(arguments, dict):
                    return {
                        "action": "tool_call",
                        "tool_name": tool_name,
                        "arguments": arguments,
                        "thought": thought,
                    }
            elif action == "finish":
                return {"action": "finish", "answer": data.get("answer", ""), "thought": thought}
        except json.JSONDecodeError:
            pass
    # Fallback: plain-text FINISH
    if "FINISH" in response.upper():
        idx = response.upper().find("FINISH")
        rest = response[idx + 6 :].strip(" :\n")
        return {"action": "finish", "answer": rest or response, "thought": ""}
    return None


def _result_text(result: Any) -> str:
    if isinstance(result, dict):
        if "output" in result:
            return str(result["output"])
        if isinstance(result.get("content"), list):
            return "".join(
                c.get("text", "") for c in result["content"] if isinstance(c, dict) and c.get("type") == "text"
            )
    return str(result)


def build_trace_output(result: InvestigationResult) -> str:
    """Thinking and answer as one string, for the root span's output attribute."""
    parts: List[str] = []
    if result.thinking:
        parts.append("=== Thinking ===")
        for thought in result.thinking:
            parts.append(thought)
            parts.append("---")
    parts.append("=== Answer ===")
    parts.append(result.answer)
    return "\n".join(parts)


async def run_investigation(
    question: str,
    llm_generate: LLMGenerate,
    registry: Optional[ToolRegistry] = None,
    max_steps: Optional[int] = None,
    llm_timeout: Optional[float] = None,
) -> InvestigationResult:
    """
    Run the agent loop for one question. Tool calls go through traced handlers.

    LLM failures end the investigation with is_error=True instead of raising.
    """
    registry = registry or get_tool_registry()
    max_steps = max_steps or settings.planner_max_steps
    if llm_timeout is None:
        llm_timeout = float(settings.planner_llm_timeout_seconds)

    definitions = registry.get_definitions()
    system = SYSTEM_PROMPT.format(
        tools=_format_tools_for_prompt(definitions),
        schemas=_format_schemas_for_prompt(definitions),
    )
    thinking: List[str] = []
    tool_calls: List[Dict[str, Any]] = []
    conversation: List[str] = []

    for step in range(1, max_steps + 1):
        user_prompt = f"Question:\n{question}\n\n"
        if conversation:
            user_prompt += "Previous steps and results:\n" + "\n".join(conversation[-10:]) + "\n\n"
        user_prompt += "What is the next action? Reply with one JSON object only."

        try:
            if llm_timeout > 0:
                response = await asyncio.wait_for(llm_generate(user_prompt, system), timeout=llm_timeout)
            else:
                response = await llm_generate(user_prompt, system)
        except asyncio.TimeoutError:
            logger.error("Investigator LLM call timed out after %ss", llm_timeout)
            return InvestigationResult(
                answer=f"LLM call timed out after {llm_timeout:g}s",
                thinking=thinking,
                tool_calls=tool_calls,
                is_error=True,
            )
        except Exception as e:
            logger.exception("Investigator LLM call failed: %s", e)
            return InvestigationResult(
                answer=f"LLM call failed: {e}", thinking=thinking, tool_calls=tool_calls, is_error=True
            )

        parsed = _parse_planner_response(response)
        if not parsed:
            conversation.append(f"Step {step} (parse failed): {response[:500]}")
            continue
        if parsed["thought"]:
            thinking.append(parsed["thought"])

        if parsed["action"] == "finish":
            return InvestigationResult(answer=parsed["answer"], thinking=thinking, tool_calls=tool_calls)

        tool_name = parsed["tool_name"]
        arguments = parsed["arguments"]
        handler = registry.get_traced_handler(tool_name)
        if handler is None:
            conversation.append(f"Step {step}: unknown tool '{tool_name}'. Use one of: {registry.list_tools()}")
            continue

        try:
            result = await handler(arguments)
        except Exception as e:
            logger.warning("Tool %s failed: %s", tool_name, e)
            result = {"output": f"Error: {e}", "isError": True}

        result_text = _result_text(result)
        is_error = bool(result.get("isError")) if isinstance(result, dict) else False
        tool_calls.append(
            {
                "tool_name": tool_name,
                "arguments": arguments,
                "result_summary": result_text[:500],
                "is_error": is_error,
            }
        )
        conversation.append(f"Tool call: {tool_name}({json.dumps(arguments)}) -> {result_text[:MAX_RESULT_CHARS_IN_CONTEXT]}")
        if is_error:
            conversation.append("(Tool returned an error; try another action or finish with what we have.)")

    return InvestigationResult(
        answer="Reached maximum steps without a final answer.",
        thinking=thinking,
        tool_calls=tool_calls,
        is_error=True,
    )


def default_llm_generate() -> LLMGenerate:
    from cluster_investigator.llm.openai import OpenAIProvider

    return OpenAIProvider().as_planner_callable()


async def investigate(
    question: str,
    llm_generate: Optional[LLMGenerate] = None,
    registry: Optional[ToolRegistry] = None,
) -> InvestigationResult:
    """Run a traced investigation and record its output on the root span."""
    llm_generate = llm_generate or default_llm_generate()

    async def _run() -> InvestigationResult:
        result = await run_investigation(question, llm_generate, registry)
        set_trace_output(build_trace_output(result), result.answer)
        return result

    return await trace_investigation(question, _run)
