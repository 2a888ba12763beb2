"""Job orchestration: progress tracking, question registry and the orchestrator."""

from docqa.pipeline.orchestrator import NO_RELEVANT_INFORMATION, PipelineOrchestrator
from docqa.pipeline.progress_tracker import DocumentProgressTracker
from docqa.pipeline.question_registry import QuestionRegistry

__all__ = [
    "DocumentProgressTracker",
    "NO_RELEVANT_INFORMATION",
    "PipelineOrchestrator",
    "QuestionRegistry",
]
