"""Summary repository: scoping, TTL bound and newest-wins lookups."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from crud.ai_summaries import (
    find_comparison,
    find_summary,
    get_summary_for_user,
    insert_comparison,
    insert_summary,
    list_summaries_for_user,
)
from models.ai_summaries import AISummary


KEY = "k" * 64


def _row(user_id="user-1", key=KEY, age=timedelta(0), tldr="x"):
    return AISummary(
        user_id=user_id,
        cache_key=key,
        input_text_hash="h" * 64,
        payload={"tldr": tldr},
        created_at=datetime.now(UTC) - age,
    )


@pytest.mark.asyncio
async def test_insert_then_find(db_session):
    stored = await insert_summary(db_session, "user-1", KEY, "h" * 64, {"tldr": "Hi"})

    assert stored.id is not None
    assert stored.created_at is not None
    found = await find_summary(db_session, "user-1", KEY)
    assert found is not None
    assert found.id == stored.id
    assert found.payload == {"tldr": "Hi"}


@pytest.mark.asyncio
async def test_find_is_scoped_to_user_and_key(db_session):
    await insert_summary(db_session, "user-1", KEY, "h" * 64, {"tldr": "Hi"})

    assert await find_summary(db_session, "user-2", KEY) is None
    assert await find_summary(db_session, "user-1", "z" * 64) is None


@pytest.mark.asyncio
async def test_newest_row_wins(db_session):
    db_session.add_all(
        [_row(age=timedelta(minutes=5), tldr="older"), _row(tldr="newer")]
    )
    await db_session.commit()

    found = await find_summary(db_session, "user-1", KEY)
    assert found.payload == {"tldr": "newer"}


@pytest.mark.asyncio
async def test_rows_older_than_since_are_ignored(db_session):
    db_session.add(_row(age=timedelta(days=8)))
    await db_session.commit()

    since = datetime.now(UTC) - timedelta(days=7)
    assert await find_summary(db_session, "user-1", KEY, since=since) is None
    assert await find_summary(db_session, "user-1", KEY) is not None


@pytest.mark.asyncio
async def test_comparison_round_trip_keeps_request_order(db_session):
    stored = await insert_comparison(
        db_session, "user-1", KEY, ["L3", "L1"], {"summary": "Both"}
    )

    found = await find_comparison(db_session, "user-1", KEY)
    assert found.id == stored.id
    assert found.listing_ids == ["L3", "L1"]
    assert found.listing_ids_key == "L1,L3"
    assert await find_comparison(db_session, "user-2", KEY) is None


@pytest.mark.asyncio
async def test_get_and_list_for_user(db_session):
    db_session.add_all(
        [
            _row(age=timedelta(minutes=2), tldr="first"),
            _row(tldr="second"),
            _row(user_id="user-2", tldr="theirs"),
        ]
    )
    await db_session.commit()

    rows = await list_summaries_for_user(db_session, "user-1")
    assert [r.payload["tldr"] for r in rows] == ["second", "first"]
    assert len(await list_summaries_for_user(db_session, "user-1", limit=1)) == 1

    theirs = (await list_summaries_for_user(db_session, "user-2"))[0]
    assert await get_summary_for_user(db_session, "user-1", theirs.id) is None
    assert await get_summary_for_user(db_session, "user-2", theirs.id) is not None
    assert await get_summary_for_user(db_session, "user-1", uuid4()) is None
