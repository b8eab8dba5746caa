"""Kernel: agent-facing tools and sandboxed process execution."""
