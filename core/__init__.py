"""Core business logic for Consensus.

This package contains configuration, LLM interaction, prompt building,
local project storage and the application controller. It has ZERO
dependency on any UI or web framework.
"""

__version__ = "0.3.0"
