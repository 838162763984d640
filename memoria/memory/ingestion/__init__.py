"""Write-path components: extraction, dedupe and summary regeneration."""

from memoria.memory.ingestion.dedupe import Dedupe
from memoria.memory.ingestion.drafts import build_draft
from memoria.memory.ingestion.extractor import (
    ExtractionResult,
    Extractor,
    HeuristicExtractor,
    split_sentences,
)
from memoria.memory.ingestion.llm_extractor import LLMExtractor
from memoria.memory.ingestion.rules import HeuristicRule, default_rules
from memoria.memory.ingestion.summarizer import Summarizer

__all__ = [
    "Dedupe",
    "ExtractionResult",
    "Extractor",
    "HeuristicExtractor",
    "HeuristicRule",
    "LLMExtractor",
    "Summarizer",
    "build_draft",
    "default_rules",
    "split_sentences",
]
