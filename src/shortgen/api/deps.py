"""FastAPI dependencies."""

from __future__ import annotations

from shortgen.config import Settings
from shortgen.context import AccountContext
from shortgen.jobs.dispatcher import ScheduledUploadDispatcher
from shortgen.jobs.manager import GenerationJobManager

_context: AccountContext | None = None
_job_manager: GenerationJobManager | None = None


def init_context(settings: Settings) -> AccountContext:
    """Build the account context and job manager (called at app startup)."""
    global _context, _job_manager
    _context = AccountContext.from_settings(settings)
    _job_manager = GenerationJobManager(
        _context.generation, max_concurrent=settings.max_concurrent_generations
    )
    return _context


def set_context(context: AccountContext, job_manager: GenerationJobManager) -> None:
    """Install a prebuilt context (tests, embedding)."""
    global _context, _job_manager
    _context = context
    _job_manager = job_manager


def clear_context() -> None:
    global _context, _job_manager
    _context = None
    _job_manager = None


def get_context() -> AccountContext:
    """Dependency that provides the AccountContext instance."""
    if _context is None:
        raise RuntimeError("AccountContext not initialized; call init_context() first")
    return _context


def get_job_manager() -> GenerationJobManager:
    """Dependency that provides the GenerationJobManager instance."""
    if _job_manager is None:
        raise RuntimeError("GenerationJobManager not initialized; call init_context() first")
    return _job_manager


def get_dispatcher() -> ScheduledUploadDispatcher:
    return get_context().dispatcher
