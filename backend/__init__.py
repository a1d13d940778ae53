# backend/__init__.py

"""
Backend package for the examiner assignment system.
Exposes the services, database helpers and configuration.
"""

from .app import (
    AppError,
    InsufficientExaminersError,
    NothingToUndoError,
    ExaminerAssignmentService,
    RosterData,
    RosterPort,
)

from .app.database import (
    Base,
    DatabaseManager,
    db_manager,
    get_db,
    init_db,
    check_db_health,
)

from .app.config import (
    Settings,
    get_settings,
    validate_settings,
    setup_logging,
    DevelopmentSettings,
    ProductionSettings,
    TestingSettings,
)

# Re-export all important components
__all__ = [
    # Core components
    "AppError",
    "InsufficientExaminersError",
    "NothingToUndoError",
    # Services
    "ExaminerAssignmentService",
    "RosterData",
    "RosterPort",
    # Database
    "Base",
    "DatabaseManager",
    "db_manager",
    "get_db",
    "init_db",
    "check_db_health",
    # Configuration
    "Settings",
    "get_settings",
    "validate_settings",
    "setup_logging",
    "DevelopmentSettings",
    "ProductionSettings",
    "TestingSettings",
]
