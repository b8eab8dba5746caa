"""HTTP surface for AgentFS."""
