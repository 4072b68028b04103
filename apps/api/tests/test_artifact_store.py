import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from models.artifact import ArtifactKind
from services.artifacts import (
    count_artifacts,
    create_artifact,
    delete_artifact,
    list_artifacts,
    serialize_artifact,
)
from services.errors import StorageUnavailable, ValidationError
from services.users import UserUpsert, upsert_user


async def _store(db, user_id, kind, title="t", result=None):
    return await create_artifact(
        db,
        user_id=user_id,
        kind=kind,
        title=title,
        input_text="input",
        result_json=json.dumps(result if result is not None else {"ok": True}),
    )


@pytest.mark.asyncio
async def test_list_is_owner_scoped_ordered_and_filterable(db_session):
    owner = await upsert_user(db_session, UserUpsert(open_id="owner-a"))
    other = await upsert_user(db_session, UserUpsert(open_id="owner-b"))

    first = await _store(db_session, owner, "hook_analysis", title="first")
    second = await _store(db_session, owner, ArtifactKind.SCRIPT, title="second")
    third = await _store(db_session, owner, "hook_analysis", title="third")
    await _store(db_session, other, "hook_analysis", title="foreign")

    rows = await list_artifacts(db_session, owner)
    assert [row.id for row in rows] == [first, second, third]
    assert all(row.user_id == owner for row in rows)

    hooks = await list_artifacts(db_session, owner, "hook_analysis")
    assert [row.title for row in hooks] == ["first", "third"]


@pytest.mark.asyncio
async def test_delete_only_removes_owned_artifacts(db_session):
    user_a = await upsert_user(db_session, UserUpsert(open_id="user-a"))
    user_b = await upsert_user(db_session, UserUpsert(open_id="user-b"))
    artifact_id = await _store(db_session, user_a, "thumbnail")

    await delete_artifact(db_session, user_b, artifact_id)
    assert [row.id for row in await list_artifacts(db_session, user_a)] == [artifact_id]
    assert await list_artifacts(db_session, user_b) == []

    await delete_artifact(db_session, user_a, 999999)
    await delete_artifact(db_session, user_a, artifact_id)
    assert await list_artifacts(db_session, user_a) == []


@pytest.mark.asyncio
async def test_count_by_kind_omits_empty_kinds(db_session):
    owner = await upsert_user(db_session, UserUpsert(open_id="counter"))
    other = await upsert_user(db_session, UserUpsert(open_id="someone-else"))
    await _store(db_session, owner, "hook_analysis")
    await _store(db_session, owner, "hook_analysis")
    await _store(db_session, owner, "monetization")
    await _store(db_session, other, "script")

    counts = await count_artifacts(db_session, owner)

    assert counts == {"hook_analysis": 2, "monetization": 1}
    assert counts.get("script", 0) == 0
    assert await count_artifacts(db_session, 424242) == {}


@pytest.mark.asyncio
async def test_create_rejects_unknown_kind(db_session, user_id):
    with pytest.raises(ValidationError):
        await _store(db_session, user_id, "podcast")


@pytest.mark.asyncio
async def test_serialize_tolerates_corrupt_result_json(db_session, user_id):
    await create_artifact(
        db_session,
        user_id=user_id,
        kind="script",
        title="Video script",
        input_text="hook",
        result_json="{not json",
    )
    good_id = await _store(db_session, user_id, "script", result=[{"time": "0:00", "text": "hi"}])

    rows = [serialize_artifact(row) for row in await list_artifacts(db_session, user_id)]

    assert rows[0]["result"] is None
    assert rows[0]["kind"] == "script"
    assert rows[1]["id"] == good_id
    assert rows[1]["result"] == [{"time": "0:00", "text": "hi"}]


def _unreachable_session():
    db = MagicMock()
    error = OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))
    db.execute = AsyncMock(side_effect=error)
    db.flush = AsyncMock(side_effect=error)
    db.commit = AsyncMock(side_effect=error)
    return db


@pytest.mark.asyncio
async def test_store_operations_raise_storage_unavailable():
    db = _unreachable_session()

    with pytest.raises(StorageUnavailable):
        await _store(db, 1, "hook_analysis")
    with pytest.raises(StorageUnavailable):
        await list_artifacts(db, 1)
    with pytest.raises(StorageUnavailable):
        await delete_artifact(db, 1, 1)
    with pytest.raises(StorageUnavailable):
        await count_artifacts(db, 1)
