"""Threshold-triggered compaction of history logs into memory."""

from chronicler.compaction.coordinator import CompactionCoordinator
from chronicler.compaction.pipeline import CompactionPipeline, CompactionResult

__all__ = ["CompactionCoordinator", "CompactionPipeline", "CompactionResult"]
