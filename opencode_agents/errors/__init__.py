"""Error taxonomy and reporting for opencode-agents."""

from opencode_agents.errors.handlers import ClassifiedError, ErrorHandler, ErrorReport
from opencode_agents.errors.taxonomy import AgentsError, ErrorCategory

__all__ = ["AgentsError", "ClassifiedError", "ErrorCategory", "ErrorHandler", "ErrorReport"]
