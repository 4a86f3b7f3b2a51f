"""Custom exception classes for the investigator.

Each exception carries:
  error_code     machine-readable code for callers and exit handling
  message        human-readable description
  details        optional structured context (config keys, tool names, etc.)
  recovery_hint  actionable guidance printed alongside the error
"""

from typing import Any, Dict, Optional


class InvestigatorError(Exception):
    """Base exception for investigator errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "INVESTIGATOR_ERROR"
        self.details = details or {}
        self.recovery_hint = recovery_hint or (
            "An unexpected error occurred. Re-run the command with LOG_LEVEL=DEBUG "
            "for more detail."
        )


class ConfigurationError(InvestigatorError):
    """Exception raised for startup configuration errors. Always fatal."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code="CONFIGURATION_ERROR",
            details=details,
            recovery_hint=recovery_hint or (
                f"Fix the value of '{config_key}' in the environment or .env file and restart."
            ),
        )
        self.config_key = config_key


class LLMProviderError(InvestigatorError):
    """Exception raised by LLM provider operations."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code="LLM_PROVIDER_ERROR",
            details=details,
            recovery_hint=recovery_hint or (
                f"The LLM provider '{provider}' is unavailable. "
                "Check OPENAI_API_KEY and OPENAI_MODEL, then retry."
            ),
        )
        self.provider = provider


class ToolError(InvestigatorError):
    """Exception raised when a tool cannot be invoked (unknown tool, invalid arguments)."""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code="TOOL_ERROR",
            details=details,
            recovery_hint=recovery_hint or (
                f"The tool '{tool_name}' rejected the call. Check the tool name and arguments."
            ),
        )
        self.tool_name = tool_name
