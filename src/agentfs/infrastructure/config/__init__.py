"""Configuration helpers."""

from .settings_utils import (
    env_bool,
    env_bytes,
    env_choice,
    env_int,
    env_list,
    env_str,
    parse_bool,
    parse_byte_size,
)

__all__ = [
    "env_bool",
    "env_bytes",
    "env_choice",
    "env_int",
    "env_list",
    "env_str",
    "parse_bool",
    "parse_byte_size",
]
