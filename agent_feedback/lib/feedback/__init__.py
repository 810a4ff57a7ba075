"""Agent feedback library.

This package contains the core business logic for comments, ratings and
inbox notifications on artifacts and skills.

Components:
    - models: Pydantic domain records and id/timestamp helpers
    - markdown: Front-matter parsing and markdown-to-text rendering
    - mentions: @-mention extraction
    - threads: CommentThreadEngine
    - ratings: RatingUpsertEngine and the rating input types
    - fanout: InboxFanoutEngine
    - service: Main FeedbackService orchestration layer
"""

__all__ = []
