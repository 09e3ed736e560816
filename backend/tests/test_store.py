"""
test_store.py
-------------
FeedbackStore against an in-memory SQLite database.
"""

import pytest
from sqlalchemy.exc import OperationalError

from feedback_dashboard.config import Settings
from feedback_dashboard.database.connection import FeedbackStore
from feedback_dashboard.errors import ServiceUnavailable
from feedback_dashboard.models.feedback import FeedbackCreate

from conftest import make_store


@pytest.mark.asyncio
async def test_store_not_ready_before_provision():
    store = make_store()
    assert not store.ready

    with pytest.raises(ServiceUnavailable):
        await store.list_all()
    with pytest.raises(ServiceUnavailable):
        await store.create(FeedbackCreate(name="a", message="b"))
    with pytest.raises(ServiceUnavailable):
        await store.stats()


@pytest.mark.asyncio
async def test_provision_is_idempotent(ready_store):
    engine = ready_store.engine
    await ready_store.provision()

    assert ready_store.ready
    assert ready_store.engine is engine


@pytest.mark.asyncio
async def test_provision_failure_leaves_store_unavailable(tmp_path):
    store = FeedbackStore(f"sqlite+aiosqlite:///{tmp_path}/missing/dir/feedback.db")

    with pytest.raises(OperationalError):
        await store.provision()

    assert not store.ready
    assert store.engine is None


@pytest.mark.asyncio
async def test_create_rereads_stored_row(ready_store):
    feedback = await ready_store.create(
        FeedbackCreate(name="Grace", email="", message="Hello", rating=2)
    )

    assert feedback.id is not None
    assert feedback.created_at is not None
    assert feedback.email is None
    assert feedback.rating == 2


@pytest.mark.asyncio
async def test_list_all_orders_newest_first(ready_store):
    for name in ("R1", "R2", "R3"):
        await ready_store.create(FeedbackCreate(name=name, message="m"))

    feedbacks = await ready_store.list_all()
    assert [f.name for f in feedbacks] == ["R3", "R2", "R1"]


@pytest.mark.asyncio
async def test_stats(ready_store):
    empty = await ready_store.stats()
    assert empty.model_dump() == {"total": 0, "avgRating": 0, "positive": 0, "negative": 0}

    for rating in (5, 5, 1, 3, None):
        await ready_store.create(FeedbackCreate(name="n", message="m", rating=rating))

    stats = await ready_store.stats()
    assert stats.total == 5
    assert stats.avgRating == 3.5
    assert stats.positive == 2
    assert stats.negative == 1


@pytest.mark.asyncio
async def test_dispose_makes_store_unavailable(ready_store):
    await ready_store.dispose()

    with pytest.raises(ServiceUnavailable):
        await ready_store.list_all()


def test_from_settings_builds_mysql_url():
    settings = Settings(db_host="db", db_port=3307, db_user="app", db_password="secret", db_name="fb")
    store = FeedbackStore.from_settings(settings)

    assert store.url.drivername == "mysql+aiomysql"
    assert store.url.host == "db"
    assert store.url.port == 3307
    assert store.url.database == "fb"
    assert store.pool_size == 10
    assert store.engine is None
