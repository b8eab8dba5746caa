"""Tool orchestration layer for AgentFS.

Provides tool contract definitions, validation, and execution.
"""

from agentfs.kernel.tools.tool_contract import (
    TOOL_CONTRACTS,
    ToolCategory,
    ToolContract,
    canonicalize_tool_name,
    exec_tool_names,
    get_tool_contract,
    list_tool_contracts,
    normalize_tool_args,
    read_tool_names,
    render_tool_contract_for_prompt,
    supported_tool_names,
    tool_category,
    validate_tool_step,
    write_tool_names,
)
from agentfs.kernel.tools.tool_executor import (
    ToolExecutor,
    ToolExecutorError,
    execute_tool,
)

__all__ = [
    # Tool contract
    "TOOL_CONTRACTS",
    "ToolCategory",
    "ToolContract",
    "canonicalize_tool_name",
    "exec_tool_names",
    "get_tool_contract",
    "list_tool_contracts",
    "normalize_tool_args",
    "read_tool_names",
    "render_tool_contract_for_prompt",
    "supported_tool_names",
    "tool_category",
    "validate_tool_step",
    "write_tool_names",
    # Tool executor
    "ToolExecutor",
    "ToolExecutorError",
    "execute_tool",
]
