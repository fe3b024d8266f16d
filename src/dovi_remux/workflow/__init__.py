"""Per-item processing workflow."""

from dovi_remux.workflow.processor import ItemProcessor, ProcessingPlan

__all__ = ["ItemProcessor", "ProcessingPlan"]
