"""Agent-facing tool contracts.

Each tool an agent may call is described by a :class:`ToolContract`: its
category (which gates whether the executor may run it), the aliases models
tend to invent for it and its arguments, and which arguments are required.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


class ToolCategory(str, Enum):
    READ = "read"
    WRITE = "write"
    EXEC = "exec"


@dataclass(frozen=True)
class ToolContract:
    """Static description of one tool.

    Attributes:
        name: Canonical tool name
        category: Permission class of the tool
        description: One-line summary shown to the model
        aliases: Alternative tool names accepted from the model
        arg_aliases: Alternative argument names mapped to canonical ones
        required: Arguments that must carry a non-empty value
        one_of: Groups where at least one argument must be present
            (an empty string counts as present)
        defaults: Values filled in when an argument is missing or empty
    """

    name: str
    category: ToolCategory
    description: str
    aliases: Tuple[str, ...] = ()
    arg_aliases: Mapping[str, str] = field(default_factory=dict)
    required: Tuple[str, ...] = ()
    one_of: Tuple[Tuple[str, ...], ...] = ()
    defaults: Mapping[str, Any] = field(default_factory=dict)

    def usage(self) -> str:
        parts = [f"args.{name} required" for name in self.required]
        parts += [" or ".join(f"args.{name}" for name in group) + " required" for group in self.one_of]
        parts += [f"args.{name} optional (default {value!r})" for name, value in self.defaults.items()]
        return "; ".join(parts) if parts else "no args required"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "description": self.description,
            "aliases": list(self.aliases),
            "usage": self.usage(),
        }


_CONTRACTS: Tuple[ToolContract, ...] = (
    ToolContract(
        name="fs_list",
        category=ToolCategory.READ,
        description="List files in a directory (relative to project root).",
        aliases=("list_dir", "ls", "list_files", "repo_tree"),
        arg_aliases={"path": "dir", "directory": "dir", "folder": "dir"},
        defaults={"dir": "."},
    ),
    ToolContract(
        name="fs_read",
        category=ToolCategory.READ,
        description="Read a UTF-8 text file, truncated to max_bytes.",
        aliases=("read_file", "cat", "read", "repo_read"),
        arg_aliases={
            "path": "file",
            "file_path": "file",
            "maxBytes": "max_bytes",
            "max": "max_bytes",
            "limit": "max_bytes",
        },
        required=("file",),
    ),
    ToolContract(
        name="npm_list_scripts",
        category=ToolCategory.READ,
        description="List the scripts defined in the project package.json.",
        aliases=("list_scripts", "npm_scripts"),
    ),
    ToolContract(
        name="fs_write",
        category=ToolCategory.WRITE,
        description=(
            "Write a UTF-8 text file. Prefer a unified diff in `patch` when "
            "editing an existing file."
        ),
        aliases=("write_file", "create_file", "apply_patch", "repo_write"),
        arg_aliases={
            "path": "file",
            "file_path": "file",
            "content": "contents",
            "text": "contents",
            "diff": "patch",
            "patch_text": "patch",
            "expectedSha256": "expected_sha256",
            "sha256": "expected_sha256",
        },
        required=("file",),
        one_of=(("contents", "patch"),),
    ),
    ToolContract(
        name="fs_delete",
        category=ToolCategory.WRITE,
        description="Delete a file, or a directory with everything below it.",
        aliases=("delete_file", "remove", "rm", "repo_delete"),
        arg_aliases={"file": "path", "dir": "path", "target": "path"},
        required=("path",),
    ),
    ToolContract(
        name="npm_install",
        category=ToolCategory.EXEC,
        description="Install npm packages in the project folder.",
        aliases=("install_packages", "npm_add"),
        arg_aliases={"package": "packages", "pkgs": "packages"},
        required=("packages",),
    ),
    ToolContract(
        name="npm_run_script",
        category=ToolCategory.EXEC,
        description="Run an npm script defined in the project package.json.",
        aliases=("run_script", "npm_run"),
        arg_aliases={"name": "script", "script_name": "script"},
        required=("script",),
    ),
)

TOOL_CONTRACTS: Dict[str, ToolContract] = {contract.name: contract for contract in _CONTRACTS}

_NAME_INDEX: Dict[str, str] = {
    alias.lower(): contract.name
    for contract in _CONTRACTS
    for alias in (contract.name, *contract.aliases)
}


def canonicalize_tool_name(name: str, *, keep_unknown: bool = True) -> str:
    """Map a tool name or alias onto its canonical name.

    Unknown names come back unchanged, or as ``""`` when `keep_unknown` is
    False.
    """
    cleaned = str(name or "").strip()
    canonical = _NAME_INDEX.get(cleaned.lower())
    if canonical is not None:
        return canonical
    return cleaned if keep_unknown else ""


def get_tool_contract(name: str) -> Optional[ToolContract]:
    return TOOL_CONTRACTS.get(canonicalize_tool_name(name))


# arguments that reach the store or the runner as text
_TEXT_ARGS = ("file", "path", "dir", "contents", "patch", "expected_sha256", "script")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return not value
    return False


def _coerce_max_bytes(value: Any) -> int:
    # -1 makes validation report the argument instead of raising here
    try:
        return int(value)
    except (TypeError, ValueError):
        return -1


def normalize_tool_args(tool: str, args: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Rename aliased arguments, fill defaults and coerce known types.

    When an argument arrives under both its canonical name and an alias,
    whichever comes first in `args` wins.
    """
    contract = get_tool_contract(tool)
    if not isinstance(args, Mapping):
        args = {}
    if contract is None:
        return dict(args)

    normalized: Dict[str, Any] = {}
    for key, value in args.items():
        raw_key = str(key or "").strip()
        if not raw_key:
            continue
        target = contract.arg_aliases.get(raw_key, raw_key)
        normalized.setdefault(target, value)

    for key, value in contract.defaults.items():
        if _is_blank(normalized.get(key)):
            normalized[key] = value

    if contract.name == "fs_read" and normalized.get("max_bytes") is not None:
        normalized["max_bytes"] = _coerce_max_bytes(normalized["max_bytes"])
    if contract.name == "npm_install" and isinstance(normalized.get("packages"), str):
        normalized["packages"] = normalized["packages"].split()

    return normalized


def validate_tool_step(
    tool: str, args: Optional[Mapping[str, Any]]
) -> Tuple[bool, Optional[str], str]:
    """Check a tool call before it is executed.

    Returns:
        ``(True, None, "")`` when the call is acceptable, otherwise
        ``(False, code, message)`` with code ``UNKNOWN_TOOL`` or
        ``INVALID_TOOL_ARGS``.
    """
    contract = get_tool_contract(tool)
    if contract is None:
        allowed = ", ".join(supported_tool_names())
        return False, "UNKNOWN_TOOL", f"Unsupported tool '{tool}'. Allowed: {allowed}"

    normalized = normalize_tool_args(contract.name, args)

    missing = [name for name in contract.required if _is_blank(normalized.get(name))]
    missing += [
        " or ".join(group)
        for group in contract.one_of
        if all(normalized.get(name) is None for name in group)
    ]
    if missing:
        return (
            False,
            "INVALID_TOOL_ARGS",
            f"{contract.name} missing required args: {', '.join(missing)}",
        )

    for name in _TEXT_ARGS:
        value = normalized.get(name)
        if value is not None and not isinstance(value, str):
            return (
                False,
                "INVALID_TOOL_ARGS",
                f"{contract.name} invalid args: {name} must be a string",
            )

    max_bytes = normalized.get("max_bytes")
    if contract.name == "fs_read" and max_bytes is not None and max_bytes < 0:
        return (
            False,
            "INVALID_TOOL_ARGS",
            "fs_read invalid args: max_bytes must be a non-negative integer",
        )

    return True, None, ""


def tool_category(tool: str) -> str:
    """Category value of a tool, or ``""`` when the tool is unknown."""
    contract = get_tool_contract(tool)
    return contract.category.value if contract is not None else ""


def _names_in(category: ToolCategory) -> List[str]:
    return sorted(name for name, contract in TOOL_CONTRACTS.items() if contract.category is category)


def read_tool_names() -> List[str]:
    return _names_in(ToolCategory.READ)


def write_tool_names() -> List[str]:
    return _names_in(ToolCategory.WRITE)


def exec_tool_names() -> List[str]:
    return _names_in(ToolCategory.EXEC)


def supported_tool_names() -> List[str]:
    return sorted(TOOL_CONTRACTS)


def list_tool_contracts(categories: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    """Contracts as dicts, sorted by name, optionally limited to `categories`."""
    if categories is None:
        wanted = {category.value for category in ToolCategory}
    else:
        wanted = {str(item).strip().lower() for item in categories}
    return [
        TOOL_CONTRACTS[name].to_dict()
        for name in sorted(TOOL_CONTRACTS)
        if TOOL_CONTRACTS[name].category.value in wanted
    ]


def render_tool_contract_for_prompt(
    *,
    include_write_tools: bool = True,
    include_exec_tools: bool = False,
) -> str:
    """Describe the available tools as text for a system prompt."""
    lines = [
        "Available tools:",
        "- Paths are relative to the project root; paths leaving it are rejected.",
    ]
    categories = [ToolCategory.READ.value]
    if include_write_tools:
        categories.append(ToolCategory.WRITE.value)
        lines.append("- Edit existing files by sending a unified diff as fs_write.patch.")
    if include_exec_tools:
        categories.append(ToolCategory.EXEC.value)

    for item in list_tool_contracts(categories):
        aliases = ", ".join(item["aliases"]) or "none"
        lines.append(f"- {item['name']}: {item['description']} ({item['usage']}; aliases: {aliases})")
    return "\n".join(lines)
