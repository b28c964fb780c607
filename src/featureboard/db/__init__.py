"""Database module for featureboard.

Provides async SQLModel operations with PostgreSQL.
"""

from __future__ import annotations

from featureboard.db.bootstrap import (
    get_expected_tables,
    is_db_configured,
    run_alembic_upgrade,
    verify_schema,
)
from featureboard.db.engine import close_db, get_engine, get_session, init_db
from featureboard.db.features import (
    UnknownColumnError,
    create_feature,
    delete_feature,
    feature_to_card,
    get_feature_by_id,
    list_features_for_owner,
    update_feature,
    update_feature_position,
    update_feature_positions,
)
from featureboard.db.models import Feature
from featureboard.db.store import DatabaseCardStore

__all__ = [
    # Models
    "Feature",
    # Exceptions
    "UnknownColumnError",
    # Engine
    "close_db",
    "get_engine",
    "get_session",
    "init_db",
    # Bootstrap
    "get_expected_tables",
    "is_db_configured",
    "run_alembic_upgrade",
    "verify_schema",
    # Features
    "DatabaseCardStore",
    "create_feature",
    "delete_feature",
    "feature_to_card",
    "get_feature_by_id",
    "list_features_for_owner",
    "update_feature",
    "update_feature_position",
    "update_feature_positions",
]
