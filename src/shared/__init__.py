# Shared module for common utilities, models, and configuration
from .config import Settings, get_settings
from .database import Database, ResultStore, SettingsStore, get_database
from .errors import ErrorKind, JobMatchError, ProviderError
from .models import (
    BatchError,
    BatchSummary,
    Job,
    JobSummary,
    MatchCategory,
    MatchingHistoryEntry,
    MatchingResult,
    Preferences,
    Profile,
    Skill,
)

__all__ = [
    "Settings",
    "get_settings",
    "Database",
    "ResultStore",
    "SettingsStore",
    "get_database",
    "ErrorKind",
    "JobMatchError",
    "ProviderError",
    "BatchError",
    "BatchSummary",
    "Job",
    "JobSummary",
    "MatchCategory",
    "MatchingHistoryEntry",
    "MatchingResult",
    "Preferences",
    "Profile",
    "Skill",
]
