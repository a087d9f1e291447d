"""LLM classification services.

Exports:
	CompletionClient: Thin wrapper around an OpenAI-compatible chat completion endpoint.
	PromptBuilder: Builds classification and portfolio prompts.
	Parser: Extracts and validates JSON outputs from model responses.
	Classifier: Prompt -> completion -> parse pipeline.
"""

from .completion_client import CompletionClient
from .prompt_builder import PromptBuilder
from .classification_orchestrator import Classifier, Parser

__all__ = [
	"CompletionClient",
	"PromptBuilder",
	"Parser",
	"Classifier",
]
