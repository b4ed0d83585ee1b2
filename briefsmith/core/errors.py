"""Error types raised along the brief-to-artifact pipeline."""

from typing import List, Optional


class BriefsmithError(Exception):
    """Base class for every pipeline error."""


class ServiceUnavailable(BriefsmithError):
    """No candidate reasoning model answered, or the analysis call itself failed."""


class MalformedResponse(BriefsmithError):
    """The reasoning service replied but no usable task array could be parsed."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class SynthesisError(BriefsmithError):
    """A synthesizer raised while producing artifacts for one task."""

    def __init__(self, message: str, task_id: Optional[str] = None):
        super().__init__(message)
        self.task_id = task_id


class ValidationError(BriefsmithError):
    """A task is missing a field required for routing."""

    def __init__(self, missing: List[str], task_id: Optional[str] = None):
        super().__init__(f"Task is missing required fields: {', '.join(missing)}")
        self.missing = missing
        self.task_id = task_id
