"""Streaming inference across candidate models."""

from .infrastructure.inference_client import InferenceClient
from .orchestrator import InferenceOrchestrator, InferenceStream, collect_results

__all__ = [
    "InferenceClient",
    "InferenceOrchestrator",
    "InferenceStream",
    "collect_results",
]
