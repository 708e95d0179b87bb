"""Shared pytest fixtures: a small prompt corpus and deterministic settings"""

import sys
from pathlib import Path

import pytest

# Add project root to path so tests run without installing the package
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from promptsearch.config import SearchSettings
from promptsearch.models import Document


def make_doc(doc_id, title, description="", content="", category="workflow", tags=()):
    """Build a Document with sensible blanks for fields a test does not care about."""
    return Document(
        id=doc_id,
        title=title,
        description=description,
        content=content,
        category=category,
        tags=tags,
    )


@pytest.fixture
def sample_documents():
    """
    Ten prompts across categories.

    Only two are in "testing", and both score lower for "code" than
    robot-mode / code-review, which repeat "code" many times.
    """
    return [
        make_doc(
            "robot-mode", "Robot Mode Agent Handoff",
            "Make the agent work autonomously on code tasks",
            "Work on the code code code without asking questions. Write code.",
            "automation", ("agents", "autonomy"),
        ),
        make_doc(
            "code-review", "Thorough Code Review",
            "Review code for bugs and style issues",
            "Review this code carefully. Point out code smells, code bugs and code style problems.",
            "refactoring", ("review", "quality"),
        ),
        make_doc(
            "flaky-tests", "Flaky Test Hunter",
            "Find and fix flaky tests in a suite",
            "Identify flaky tests, reproduce them, and fix the root cause in the code.",
            "testing", ("tests", "debugging"),
        ),
        make_doc(
            "unit-test-writer", "Unit Test Writer",
            "Generate unit tests for a module",
            "Write unit tests covering edge cases for the given module.",
            "testing", ("tests", "coverage"),
        ),
        make_doc(
            "readme-polish", "README Polish",
            "Improve project documentation",
            "Rewrite the readme so new contributors understand setup and usage.",
            "documentation", ("docs", "writing"),
        ),
        make_doc(
            "perf-tuning", "Performance Tuning",
            "Speed up slow hot paths",
            "Profile the program, find the slow paths and optimize them for speed.",
            "refactoring", ("performance", "profiling"),
        ),
        make_doc(
            "brainstorm-features", "Feature Brainstorm",
            "Generate ideas for new features",
            "List ten bold ideas for features users would love.",
            "ideation", ("ideas", "product"),
        ),
        make_doc(
            "bug-triage", "Bug Triage",
            "Sort incoming bug reports by severity",
            "Read each bug report, reproduce it, and label severity.",
            "debugging", ("bugs", "triage"),
        ),
        make_doc(
            "ci-pipeline", "CI Pipeline Setup",
            "Automate builds with a pipeline",
            "Create a pipeline that runs lint, build and deploy steps.",
            "automation", ("ci", "pipeline"),
        ),
        make_doc(
            "status-update", "Status Update Email",
            "Summarize progress for stakeholders",
            "Write a short status update covering progress, risks and next steps.",
            "communication", ("email", "updates"),
        ),
    ]


@pytest.fixture
def settings():
    """Default settings, independent of the environment."""
    return SearchSettings()


@pytest.fixture
def doc_factory():
    """make_doc as a fixture, for tests that build their own corpus."""
    return make_doc
