"""AgentFS - sandboxed project access for AI agents.

- Every path is resolved against a fixed root; escapes are rejected
- Edits arrive as unified diffs and are applied only when they match
- File operations are exposed as agent tools and over HTTP
"""

__version__ = "0.1.0"
