"""Workflow execution."""

from .executor import WorkflowExecutor
from .steps import SendEmailSettings, StepContext, StepInterpreter

__all__ = ["WorkflowExecutor", "SendEmailSettings", "StepContext", "StepInterpreter"]
