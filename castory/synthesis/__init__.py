"""Multi-call generation orchestration."""

from .orchestrator import SynthesisOrchestrator

__all__ = ["SynthesisOrchestrator"]
