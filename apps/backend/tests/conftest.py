"""Shared fixtures: a manual clock and ready-made documents."""

import pytest

from resume_builder.schemas.document import ResumeDocument, default_document
from resume_builder.schemas.validation import validate
from resume_builder.services.persistence import MemoryStore


class ManualHandle:
    def __init__(self, when: float, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._timers: list[ManualHandle] = []

    def call_later(self, delay: float, callback) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback)
        self._timers.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for timer in self._timers if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in time order."""
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self.now = target


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def ada_document() -> ResumeDocument:
    return validate({
        "sections": [
            {
                "type": "personalDetails",
                "firstName": "Ada",
                "lastName": "Lovelace",
                "wantedJobTitle": "Analyst",
                "email": "ada@example.org",
                "city": "London",
                "country": "United Kingdom",
                "summary": "<p>First <strong>programmer</strong>.</p>",
            },
            {"type": "skills", "skills": [{"name": "Rust", "level": "expert"}]},
            {
                "type": "educations",
                "educations": [
                    {
                        "school": "University of London",
                        "degree": "Mathematics",
                        "startDate": "1832-01-01",
                        "endDate": "1835-06-01",
                        "description": "<ul><li>Calculus</li><li>Logic</li></ul>",
                    }
                ],
            },
            {
                "type": "employmentHistory",
                "employments": [
                    {
                        "jobTitle": "Translator",
                        "company": "Scientific Memoirs",
                        "startDate": "1842-09-01",
                        "endDate": None,
                    }
                ],
            },
            {"type": "languages", "languages": [{"name": "French", "level": "fluent"}]},
        ],
        "settings": {"fontFamily": "helvetica", "fontSize": 12},
    })


@pytest.fixture
def default_doc() -> ResumeDocument:
    return default_document()
