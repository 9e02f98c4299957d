"""Journey map engine: extraction stream in, positioned journey graph out."""

from journeymap.engine.assembler import AssemblyResult, JourneyAssembler, ResolutionIssue, assemble_journey
from journeymap.engine.config import AssemblyConfig, IntersectionPolicy, LaneOrdering, LayoutConfig
from journeymap.engine.events import Category, JourneyEvent, StreamCompleted, StreamFailed, TextDelta
from journeymap.engine.extractor import IncrementalJsonExtractor
from journeymap.engine.layout import GridLayout, build_layout
from journeymap.engine.pipeline import JourneyPipeline, create_pipeline
from journeymap.engine.resolver import MatchQuality, Resolution, resolve, resolve_index

__all__ = [
    "AssemblyConfig",
    "AssemblyResult",
    "Category",
    "GridLayout",
    "IncrementalJsonExtractor",
    "IntersectionPolicy",
    "JourneyAssembler",
    "JourneyEvent",
    "JourneyPipeline",
    "LaneOrdering",
    "LayoutConfig",
    "MatchQuality",
    "Resolution",
    "ResolutionIssue",
    "StreamCompleted",
    "StreamFailed",
    "TextDelta",
    "assemble_journey",
    "build_layout",
    "create_pipeline",
    "resolve",
    "resolve_index",
]
