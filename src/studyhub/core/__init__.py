"""Core business logic.

Modules:
- data_uri: data URI parsing and building
- document_text: local text extraction (PDF, EPUB, HTML, plain text)
- materials: material upload, listing and deletion
- summaries: summarize-and-save for signed-in users
- study_tools: flashcard deck and quiz session state
"""

__all__ = [
    "data_uri",
    "document_text",
    "materials",
    "summaries",
    "study_tools",
]
