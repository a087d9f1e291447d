"""Classification services.

Exports:
    CompletionClient: Thin wrapper around the chat completion endpoint.
    PromptBuilder: Builds classification and portfolio prompts.
    Parser: Completion JSON extraction and validation.
    Classifier: Prompt -> completion -> parse pipeline.
    build_reference_links: HS code research links.
    ClassificationSession: Classify-then-save flow with session results.
"""

from .llm.completion_client import CompletionClient
from .llm.prompt_builder import PromptBuilder
from .llm.classification_orchestrator import Classifier, Parser
from .links import build_reference_links
from .workflow import ClassificationSession, SubmissionResult

__all__ = [
    "CompletionClient",
    "PromptBuilder",
    "Parser",
    "Classifier",
    "build_reference_links",
    "ClassificationSession",
    "SubmissionResult",
]
