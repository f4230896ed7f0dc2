"""Workflows built on top of the API client.

WHY: Chapter removal, confirmation prompts and the URL-to-chapter flow
combine several client calls with local logic; they live outside the
client so it stays a thin HTTP wrapper.

HOW: chapters.py finds and removes chapters, prompts.py abstracts terminal
questions, transfer.py chains media acquisition and the chapter upload.

RULES:
- Modules here never build HTTP requests themselves
- Interactive input only through PromptProvider
"""
