"""Intelligence module - AI-authored proposal content."""

from proposal_engine.intelligence.comments import (
    CommentsGenerator,
    ContentRefiner,
    comments_generator,
    content_refiner,
)

__all__ = [
    "CommentsGenerator",
    "ContentRefiner",
    "comments_generator",
    "content_refiner",
]
