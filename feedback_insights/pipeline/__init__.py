"""Pipeline entry points."""

from .batch import AnalysisBatchRunner, reanalyze_all
from .journal import DurableRun, InMemoryStepJournal, JsonStepJournal, StepJournal

__all__ = [
    "AnalysisBatchRunner",
    "DurableRun",
    "InMemoryStepJournal",
    "JsonStepJournal",
    "StepJournal",
    "reanalyze_all",
]
