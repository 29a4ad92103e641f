from .facts import FactCandidate, FactMergeResult, merge_facts
from .extractor import FactExtractor
from .summarizer import Summarizer
from .hierarchy import Resummarizer, coverage_spans
from .pipeline import MemoryPipeline
from .utils import extract_first_json

__all__ = [
    "FactCandidate",
    "FactMergeResult",
    "merge_facts",
    "FactExtractor",
    "Summarizer",
    "Resummarizer",
    "coverage_spans",
    "MemoryPipeline",
    "extract_first_json",
]
