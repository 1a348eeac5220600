"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from pq_guestbook.services.submission import SubmissionPipeline


def get_pipeline(request: Request) -> SubmissionPipeline:
    """Return the process-wide admission pipeline built at startup."""
    return request.app.state.pipeline


# Type alias for pipeline dependency
PipelineDep = Annotated[SubmissionPipeline, Depends(get_pipeline)]
