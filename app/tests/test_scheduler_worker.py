"""Tests for audit scheduling and the registry audit job."""

from __future__ import annotations

import types
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models import AuditRun, AuditSchedule, Base, DuplicateFinding, Material, Supplier
from workers import scheduler, tasks


@pytest.fixture
def session_factory(monkeypatch):
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionTesting = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    monkeypatch.setattr(scheduler, "SessionLocal", SessionTesting)
    monkeypatch.setattr(tasks, "SessionLocal", SessionTesting)

    yield SessionTesting

    Base.metadata.drop_all(engine)


@pytest.fixture
def fake_redis(monkeypatch):
    class FakeRedisClient:
        def __init__(self) -> None:
            self.store: dict[str, str] = {}

        def set(self, key: str, value: str, nx: bool = False, ex: int | None = None) -> bool:  # noqa: ARG002
            if nx and key in self.store:
                return False
            self.store[key] = value
            return True

        def delete(self, key: str) -> None:
            self.store.pop(key, None)

    client = FakeRedisClient()
    redis_ns = types.SimpleNamespace(from_url=lambda url: client)  # noqa: ARG005
    monkeypatch.setattr(scheduler, "Redis", redis_ns)
    monkeypatch.setattr(tasks, "Redis", redis_ns)
    return client


@pytest.fixture
def fake_queue(monkeypatch):
    class FakeQueue:
        def __init__(self) -> None:
            self.jobs: list[tuple[str, tuple, dict]] = []

        def enqueue(self, func: str, *args, **kwargs) -> None:
            self.jobs.append((func, args, kwargs))

    queue = FakeQueue()

    def queue_factory(name: str, connection):  # noqa: ARG001
        assert name == "audits"
        return queue

    monkeypatch.setattr(scheduler, "Queue", queue_factory)
    return queue


def _as_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def test_calculate_next_due_rounds_forward():
    base = datetime(2026, 1, 1, 12, 30, tzinfo=timezone.utc)
    result = scheduler.calculate_next_due("0 3 * * *", base, base)
    assert result == datetime(2026, 1, 2, 3, 0, tzinfo=timezone.utc)


def test_calculate_next_due_accepts_naive_datetimes():
    base = datetime(2026, 1, 1, 12, 30)
    result = scheduler.calculate_next_due("0 * * * *", base, base)
    assert result.tzinfo is not None
    assert result.hour == 13


def test_enqueue_due_audits_seeds_schedules_and_locks(session_factory, fake_redis, fake_queue):
    now = datetime(2026, 10, 1, 0, 0, tzinfo=timezone.utc)

    enqueued = scheduler.enqueue_due_audits(now=now)

    assert enqueued == ["material", "product", "supplier"]
    assert [(func, args) for func, args, _ in fake_queue.jobs] == [
        ("workers.tasks.run_audit", ("material",)),
        ("workers.tasks.run_audit", ("product",)),
        ("workers.tasks.run_audit", ("supplier",)),
    ]
    assert set(fake_redis.store) == {
        "audit:material:lock",
        "audit:product:lock",
        "audit:supplier:lock",
    }

    with session_factory() as session:
        schedules = {s.registry_name: s for s in session.query(AuditSchedule).all()}
    assert schedules["material"].cadence_cron == "30 3 * * *"
    assert all(schedule.last_run_at is None for schedule in schedules.values())

    # Locks are still held, so a second pass enqueues nothing.
    assert scheduler.enqueue_due_audits(now=now) == []
    assert len(fake_queue.jobs) == 3


def test_enqueue_skips_disabled_and_not_yet_due(session_factory, fake_redis, fake_queue):
    now = datetime(2026, 10, 1, 0, 0, tzinfo=timezone.utc)
    with session_factory() as session:
        session.add_all(
            [
                AuditSchedule(registry_name="supplier", cadence_cron="0 3 * * *", next_due_at=now + timedelta(hours=3)),
                AuditSchedule(registry_name="product", cadence_cron="0 3 * * *", enabled=False),
                AuditSchedule(registry_name="material", cadence_cron="0 3 * * *", last_run_at=now - timedelta(days=2)),
                AuditSchedule(registry_name="orders", cadence_cron="0 3 * * *"),
            ]
        )
        session.commit()

    assert scheduler.enqueue_due_audits(now=now) == ["material"]
    assert set(fake_redis.store) == {"audit:material:lock"}


def test_run_audit_records_near_duplicate_pairs(session_factory, fake_redis):
    with session_factory() as session:
        session.add_all(
            [
                Supplier(name="ABC Flowers"),
                Supplier(name="ABC Flower"),
                Supplier(name="abc  flowers"),
                Supplier(name="Rose Farm"),
            ]
        )
        session.commit()

    fake_redis.store["audit:supplier:lock"] = "locked"
    run_id = tasks.run_audit("supplier")

    with session_factory() as session:
        run = session.get(AuditRun, run_id)
        assert run.status == "success"
        assert run.item_count == 3
        assert run.finished_at is not None

        findings = session.query(DuplicateFinding).filter(DuplicateFinding.run_id == run_id).all()
        pairs = {(finding.left_name, finding.right_name): float(finding.score) for finding in findings}
        assert pairs == pytest.approx(
            {
                ("ABC Flowers", "ABC Flower"): 0.8,
                ("ABC Flowers", "abc  flowers"): 1.0,
                ("ABC Flower", "abc  flowers"): 0.8,
            }
        )

        schedule = session.get(AuditSchedule, "supplier")
        assert schedule is not None
        assert schedule.last_run_at is not None
        assert _as_utc(schedule.next_due_at) > _as_utc(schedule.last_run_at)

    assert "audit:supplier:lock" not in fake_redis.store


def test_run_audit_compares_materials_within_a_branch(session_factory, fake_redis):
    with session_factory() as session:
        session.add_all(
            [
                Material(name="장미 농장", branch="광화문점"),
                Material(name="장미농장A", branch="광화문점"),
                Material(name="장미농장", branch="강남점"),
                Material(name="안개꽃", branch="강남점"),
            ]
        )
        session.commit()

    run_id = tasks.run_audit("material")

    with session_factory() as session:
        findings = session.query(DuplicateFinding).filter(DuplicateFinding.run_id == run_id).all()
        assert [(f.scope, f.left_name, f.right_name) for f in findings] == [
            ("광화문점", "장미 농장", "장미농장A"),
        ]


def test_run_audit_rejects_unknown_registry(session_factory, fake_redis):
    with pytest.raises(ValueError):
        tasks.run_audit("orders")
