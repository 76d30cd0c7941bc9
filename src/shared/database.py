"""
MongoDB database connection and operations using Motor (async driver).

Backs the result store (profile, skills, jobs, matching history) and the
key/value app settings used for provider selection.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from bson import ObjectId
from bson.errors import InvalidId
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel

from .config import Settings, get_settings
from .models import (
    Job,
    JobSummary,
    MatchingHistoryEntry,
    MatchingResult,
    Preferences,
    Profile,
    Skill,
)


class ResultStore(Protocol):
    """Read/write contract the match runner relies on."""

    async def get_profile(self) -> Optional[Profile]: ...

    async def get_skills(self) -> list[Skill]: ...

    async def get_preferences(self) -> Optional[Preferences]: ...

    async def get_job(self, job_id: str) -> Optional[Job]: ...

    async def list_jobs(self, only_unscored: bool) -> list[JobSummary]: ...

    async def list_jobs_by_ids(self, job_ids: list[str]) -> list[JobSummary]: ...

    async def count_unmatched_jobs(self) -> int: ...

    async def insert_matching_result(
        self, job_id: str, result: MatchingResult, model_used: str
    ) -> str: ...

    async def update_job_score(self, job_id: str, score: int) -> bool: ...

    async def get_matching_history(self, job_id: str) -> list[MatchingHistoryEntry]: ...


class SettingsStore(Protocol):
    """Key/value settings persisted alongside the result store."""

    async def get_setting(self, key: str) -> Optional[str]: ...

    async def set_setting(self, key: str, value: str) -> None: ...


# Jobs eligible for matching must carry description text
_HAS_TEXT = {"full_text": {"$nin": [None, ""]}}


def _object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class Database:
    """Async MongoDB database wrapper."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Establish database connection."""
        if self._client is not None:
            return

        logger.info(f"Connecting to MongoDB: {self.settings.mongodb_database}")
        self._client = AsyncIOMotorClient(self.settings.mongodb_uri)
        self._db = self._client[self.settings.mongodb_database]

        # Verify connection
        await self._client.admin.command("ping")
        logger.info("MongoDB connection established")

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None
            logger.info("MongoDB connection closed")

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """Get database instance."""
        if self._db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._db

    # -------------------------------------------------------------------------
    # Profile / Skills / Preferences
    # -------------------------------------------------------------------------

    async def get_profile(self) -> Optional[Profile]:
        """Get the user profile, None if it has not been created yet."""
        doc = await self.db.profile.find_one({})
        return Profile.model_validate(doc) if doc else None

    async def get_skills(self) -> list[Skill]:
        cursor = self.db.skills.find({}).sort("_id", ASCENDING)
        return [Skill.model_validate(doc) async for doc in cursor]

    async def get_preferences(self) -> Optional[Preferences]:
        doc = await self.db.preferences.find_one({})
        return Preferences.model_validate(doc) if doc else None

    # -------------------------------------------------------------------------
    # Jobs Collection
    # -------------------------------------------------------------------------

    async def get_job(self, job_id: str) -> Optional[Job]:
        """Get job by ID."""
        oid = _object_id(job_id)
        if oid is None:
            return None

        doc = await self.db.jobs.find_one({"_id": oid})
        if not doc:
            return None
        doc["id"] = str(doc.pop("_id"))
        return Job.model_validate(doc)

    async def list_jobs(self, only_unscored: bool) -> list[JobSummary]:
        """List jobs with text, newest first; optionally only those never scored."""
        query: dict[str, Any] = dict(_HAS_TEXT)
        if only_unscored:
            query["match_score"] = None

        cursor = self.db.jobs.find(query, {"title": 1}).sort("created_at", DESCENDING)
        return [JobSummary(id=str(doc["_id"]), title=doc.get("title", "")) async for doc in cursor]

    async def list_jobs_by_ids(self, job_ids: list[str]) -> list[JobSummary]:
        """List the given jobs that carry text, newest first."""
        oids = [oid for oid in (_object_id(job_id) for job_id in job_ids) if oid is not None]
        if not oids:
            return []

        query = {"_id": {"$in": oids}, **_HAS_TEXT}
        cursor = self.db.jobs.find(query, {"title": 1}).sort("created_at", DESCENDING)
        return [JobSummary(id=str(doc["_id"]), title=doc.get("title", "")) async for doc in cursor]

    async def count_unmatched_jobs(self) -> int:
        return await self.db.jobs.count_documents({"match_score": None, **_HAS_TEXT})

    async def update_job_score(self, job_id: str, score: int) -> bool:
        """Update the cached latest match score on a job."""
        oid = _object_id(job_id)
        if oid is None:
            return False

        result = await self.db.jobs.update_one(
            {"_id": oid},
            {"$set": {"match_score": score, "updated_at": datetime.now(timezone.utc)}},
        )
        return result.modified_count > 0

    # -------------------------------------------------------------------------
    # Matching Results Collection (append-only)
    # -------------------------------------------------------------------------

    async def insert_matching_result(
        self, job_id: str, result: MatchingResult, model_used: str
    ) -> str:
        """Append a history entry, returns its id."""
        document = {
            "job_id": job_id,
            "result": result.model_dump(mode="json"),
            "api_model": model_used,
            "created_at": datetime.now(timezone.utc),
        }
        inserted = await self.db.matching_results.insert_one(document)
        return str(inserted.inserted_id)

    async def get_matching_history(self, job_id: str) -> list[MatchingHistoryEntry]:
        """All matching results for a job, newest first."""
        cursor = self.db.matching_results.find({"job_id": job_id}).sort(
            "created_at", DESCENDING
        )
        return [
            MatchingHistoryEntry(
                id=str(doc["_id"]),
                job_id=doc["job_id"],
                result=MatchingResult.model_validate(doc.get("result") or {}),
                api_model=doc.get("api_model"),
                created_at=doc["created_at"],
            )
            async for doc in cursor
        ]

    # -------------------------------------------------------------------------
    # App Settings Collection
    # -------------------------------------------------------------------------

    async def get_setting(self, key: str) -> Optional[str]:
        doc = await self.db.app_settings.find_one({"key": key})
        return doc.get("value") if doc else None

    async def set_setting(self, key: str, value: str) -> None:
        await self.db.app_settings.update_one(
            {"key": key},
            {"$set": {"value": value, "updated_at": datetime.now(timezone.utc)}},
            upsert=True,
        )

    # -------------------------------------------------------------------------
    # Index Setup
    # -------------------------------------------------------------------------

    async def ensure_indexes(self) -> None:
        """Create database indexes."""
        job_indexes = [
            IndexModel([("created_at", DESCENDING)]),
            IndexModel([("match_score", ASCENDING)]),
        ]
        await self.db.jobs.create_indexes(job_indexes)

        result_indexes = [
            IndexModel([("job_id", ASCENDING), ("created_at", DESCENDING)]),
        ]
        await self.db.matching_results.create_indexes(result_indexes)

        await self.db.app_settings.create_indexes([IndexModel([("key", ASCENDING)], unique=True)])

        logger.info("Database indexes created")


# Global database instance
_database: Optional[Database] = None


async def get_database() -> Database:
    """Get or create database instance."""
    global _database
    if _database is None:
        _database = Database()
        await _database.connect()
    return _database
