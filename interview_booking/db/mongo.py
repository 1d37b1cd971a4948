"""
MongoDB database connection and helpers.
"""

from typing import Optional

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from interview_booking.config import Config


_client: Optional[MongoClient] = None


def get_database(config: Config) -> Database:
    """Get MongoDB database instance. Uses MONGODB_DB_NAME, default 'interview_booking'."""
    global _client
    if not config.mongo.uri:
        raise ValueError("MONGODB_URI is not configured")
    if _client is None:
        _client = MongoClient(
            config.mongo.uri,
            serverSelectionTimeoutMS=config.mongo.server_selection_timeout_ms,
        )
    return _client.get_database(config.mongo.db_name)


def ensure_indexes(db: Database) -> None:
    """Indexes for the free-slot listing and per-party request queries."""
    db["slots"].create_index(
        [("interviewer_id", ASCENDING), ("date", ASCENDING), ("start_time", ASCENDING)]
    )
    db["slots"].create_index("claimed_by")
    db["interview_requests"].create_index("candidate_id")
    db["interview_requests"].create_index("interviewer_id")
    db["interview_requests"].create_index("slot_id")


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
