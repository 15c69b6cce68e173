"""
Test configuration and fixtures for the backend test suite.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from schedule_backend.app.db.database import get_db
from schedule_backend.app.db.models import RawDependencyEdge, SchedulableItem
from schedule_backend.main import app

SCHEMA = [
    "CREATE TABLE users (id INTEGER PRIMARY KEY, username TEXT)",
    "CREATE TABLE projects (id INTEGER PRIMARY KEY, name TEXT, end_date TEXT)",
    """CREATE TABLE issues (
        id INTEGER PRIMARY KEY, title TEXT, assignee TEXT, due_date TEXT,
        estimated_effort_hours REAL, ai_effort_estimate_hours REAL,
        hybrid_effort_estimate_hours REAL, planning_estimate_source TEXT)""",
    """CREATE TABLE action_items (
        id INTEGER PRIMARY KEY, title TEXT, assignee TEXT, due_date TEXT,
        estimated_effort_hours REAL, ai_effort_estimate_hours REAL,
        hybrid_effort_estimate_hours REAL, planning_estimate_source TEXT)""",
    """CREATE TABLE issue_assignees (
        id INTEGER PRIMARY KEY AUTOINCREMENT, issue_id INTEGER, user_id INTEGER,
        is_primary BOOLEAN DEFAULT 0, effort_percentage INTEGER DEFAULT 100)""",
    """CREATE TABLE action_item_assignees (
        id INTEGER PRIMARY KEY AUTOINCREMENT, action_item_id INTEGER, user_id INTEGER,
        is_primary BOOLEAN DEFAULT 0, effort_percentage INTEGER DEFAULT 100)""",
    """CREATE TABLE issue_dependencies (
        id INTEGER PRIMARY KEY AUTOINCREMENT, issue_id INTEGER,
        prerequisite_item_type TEXT, prerequisite_item_id INTEGER)""",
    """CREATE TABLE action_item_dependencies (
        id INTEGER PRIMARY KEY AUTOINCREMENT, action_item_id INTEGER,
        prerequisite_item_type TEXT, prerequisite_item_id INTEGER)""",
    """CREATE TABLE issue_relationships (
        id INTEGER PRIMARY KEY AUTOINCREMENT, source_type TEXT, source_id INTEGER,
        target_type TEXT, target_id INTEGER, relationship_type TEXT)""",
    """CREATE TABLE project_schedules (
        id INTEGER PRIMARY KEY AUTOINCREMENT, project_id INTEGER, name TEXT, version INTEGER,
        start_date TEXT, end_date TEXT, hours_per_day REAL, include_weekends BOOLEAN,
        total_tasks INTEGER, total_hours REAL, critical_path_tasks INTEGER,
        critical_path_hours REAL, risks_count INTEGER, is_active BOOLEAN,
        is_published BOOLEAN, created_by INTEGER, notes TEXT)""",
    """CREATE TABLE schedule_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT, schedule_id INTEGER, item_type TEXT, item_id INTEGER)""",
    """CREATE TABLE task_schedules (
        id INTEGER PRIMARY KEY AUTOINCREMENT, schedule_id INTEGER, item_type TEXT, item_id INTEGER,
        assignee TEXT, estimated_hours REAL, estimate_source TEXT, scheduled_start TEXT,
        scheduled_end TEXT, duration_days INTEGER, due_date TEXT, is_critical_path BOOLEAN,
        has_risk BOOLEAN, risk_reason TEXT, days_late INTEGER, dependencies TEXT)""",
]


@pytest.fixture
def db_engine(tmp_path):
    """SQLite database with the tables the loader and store read and write."""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", echo=False)
    with engine.begin() as conn:
        for stmt in SCHEMA:
            conn.execute(text(stmt))
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_engine):
    """Test client whose get_db dependency points at the SQLite test database."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_item():
    """Factory for SchedulableItem: make_item(1, 8, title='A', kind='issue', ...)."""
    def _make(item_id, estimate=0, kind="issue", **kwargs):
        return SchedulableItem(kind=kind, id=item_id, estimate=estimate, **kwargs)
    return _make


@pytest.fixture
def make_edge():
    """Factory for RawDependencyEdge between issues by default."""
    def _make(source_id, target_id, relationship_type="depends_on", source_type="issue", target_type="issue"):
        return RawDependencyEdge(
            source_type=source_type,
            source_id=source_id,
            target_type=target_type,
            target_id=target_id,
            relationship_type=relationship_type,
        )
    return _make


@pytest.fixture
def scenario(make_item, make_edge):
    """A (8h), B (16h, depends on A), C (8h, depends on A)."""
    items = [
        make_item(1, 8, title="A"),
        make_item(2, 16, title="B"),
        make_item(3, 8, title="C"),
    ]
    edges = [make_edge(2, 1), make_edge(3, 1)]
    return items, edges
