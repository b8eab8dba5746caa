"""Process execution confined to the sandbox root."""

from agentfs.kernel.sandbox.script_runner import (
    ScriptResult,
    ScriptRunner,
    validate_package_spec,
    validate_script_name,
)

__all__ = [
    "ScriptResult",
    "ScriptRunner",
    "validate_package_spec",
    "validate_script_name",
]
