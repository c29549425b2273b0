# Services package

from .llm import LLMService
from .job_tracker import JobRun, JobTracker

__all__ = ["LLMService", "JobRun", "JobTracker"]
