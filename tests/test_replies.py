from sqlalchemy import func, select

from forum_api.models.favorite_model import Favorite
from forum_api.models.forum_model import Reply
from forum_api.utils.token_utils import token_by_id


async def _reply_count(db, thread_id=None) -> int:
    stmt = select(func.count(Reply.id))
    if thread_id is not None:
        stmt = stmt.where(Reply.thread_id == thread_id)
    return int((await db.execute(stmt)).scalar_one())


async def test_an_authenticated_user_can_post_replies(client, db, factory):
    user = await factory.user()
    token = token_by_id(user.id)
    thread = await factory.thread()

    response = await client.post(
        f"/api/replies?token={token}",
        json={"content": "Lorem", "thread_id": thread.id},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["content"] == "Lorem"
    assert data["thread_id"] == thread.id
    assert data["creator"] == {"id": user.id, "name": user.name}
    assert data["ago"].endswith("ago")
    assert await _reply_count(db, thread.id) == 1


async def test_the_token_can_be_sent_as_a_bearer_header(client, db, factory):
    user = await factory.user()
    thread = await factory.thread()

    response = await client.post(
        "/api/replies",
        json={"content": "Lorem", "thread_id": thread.id},
        headers={"Authorization": f"Bearer {token_by_id(user.id)}"},
    )

    assert response.status_code == 200
    assert await _reply_count(db, thread.id) == 1


async def test_a_guest_can_not_store_a_reply(client, db, factory):
    thread = await factory.thread()

    response = await client.post("/api/replies?token=lorem", json={"content": "Lorem", "thread_id": thread.id})
    assert response.status_code == 401

    response = await client.post("/api/replies", json={"content": "Lorem", "thread_id": thread.id})
    assert response.status_code == 401

    assert await _reply_count(db, thread.id) == 0


async def test_a_reply_needs_content_and_an_existing_thread(client, db, factory):
    user = await factory.user()
    token = token_by_id(user.id)
    thread = await factory.thread()

    missing = await client.post(f"/api/replies?token={token}", json={"thread_id": thread.id})
    blank = await client.post(f"/api/replies?token={token}", json={"content": "   ", "thread_id": thread.id})
    no_thread = await client.post(f"/api/replies?token={token}", json={"content": "Lorem", "thread_id": 999})

    assert missing.status_code == 422
    assert blank.status_code == 422
    assert no_thread.status_code == 404
    assert await _reply_count(db) == 0


async def test_a_reply_needs_a_thread_id(client, db, factory):
    user = await factory.user()

    response = await client.post(f"/api/replies?token={token_by_id(user.id)}", json={"content": "Lorem"})

    assert response.status_code == 422
    assert await _reply_count(db) == 0



async def test_a_reply_can_be_deleted(client, db, factory):
    john = await factory.user()
    thread = await factory.thread()
    reply = await factory.reply(thread=thread, user=john)

    assert await _reply_count(db) == 1

    response = await client.delete(f"/api/replies/{reply.id}?token={token_by_id(john.id)}")

    assert response.status_code == 204
    assert await _reply_count(db) == 0


async def test_only_the_owner_can_delete_a_reply(client, db, factory):
    john = await factory.user()
    jane = await factory.user(name="Jane Doe")
    reply = await factory.reply(user=jane)

    response = await client.delete(f"/api/replies/{reply.id}?token={token_by_id(john.id)}")
    assert response.status_code == 403
    assert await _reply_count(db) == 1

    response = await client.delete(f"/api/replies/{reply.id}?token={token_by_id(jane.id)}")
    assert response.status_code == 204
    assert await _reply_count(db) == 0


async def test_a_guest_can_not_delete_a_reply(client, db, factory):
    reply = await factory.reply()

    response = await client.delete(f"/api/replies/{reply.id}")

    assert response.status_code == 401
    assert await _reply_count(db) == 1


async def test_deleting_a_reply_removes_its_favorites(client, db, factory):
    john = await factory.user()
    reply = await factory.reply(user=john)
    await reply.favorite(db, await factory.user())
    await db.commit()

    response = await client.delete(f"/api/replies/{reply.id}?token={token_by_id(john.id)}")

    assert response.status_code == 204
    remaining = (await db.execute(select(func.count(Favorite.id)))).scalar_one()
    assert remaining == 0


async def test_a_reply_can_be_updated(client, db, factory):
    john = await factory.user(name="John Doe")
    reply = await factory.reply(user=john, content="Lorem")

    response = await client.put(
        f"/api/replies/{reply.id}?token={token_by_id(john.id)}",
        json={"content": "Hello world"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["content"] == "Hello world"
    await db.refresh(reply)
    assert reply.content == "Hello world"


async def test_a_reply_can_be_updated_only_by_the_owner(client, db, factory):
    john = await factory.user(name="John Doe")
    reply = await factory.reply(content="Lorem")

    response = await client.put(
        f"/api/replies/{reply.id}?token={token_by_id(john.id)}",
        json={"content": "Hello world"},
    )

    assert response.status_code == 403
    await db.refresh(reply)
    assert reply.content == "Lorem"


async def test_a_guest_can_not_update_a_reply(client, db, factory):
    reply = await factory.reply(content="Lorem")

    anonymous = await client.put(f"/api/replies/{reply.id}", json={"content": "Hello world"})
    bad_token = await client.put(f"/api/replies/{reply.id}?token=lorem", json={"content": "Hello world"})

    assert anonymous.status_code == 401
    assert bad_token.status_code == 401
    await db.refresh(reply)
    assert reply.content == "Lorem"



async def test_updating_a_missing_reply_is_not_found(client, factory):
    john = await factory.user()

    response = await client.put(f"/api/replies/999?token={token_by_id(john.id)}", json={"content": "Hello"})

    assert response.status_code == 404


async def test_a_single_reply_can_be_shown(client, factory):
    reply = await factory.reply(content="Shown")

    response = await client.get(f"/api/replies/{reply.id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["content"] == "Shown"
    assert data["creator"]["id"] == reply.user_id
    assert data["is_best"] is False


async def test_we_can_fetch_replies_from_a_particular_thread(client, factory):
    thread = await factory.thread()
    await factory.replies(10, thread=thread)
    await factory.reply()  # another thread

    response = await client.get(f"/api/{thread.category.slug}/{thread.slug}/replies")

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 10
    assert all(item["thread_id"] == thread.id for item in data)
    assert all(item["creator"] is not None for item in data)


async def test_replies_are_listed_in_creation_order(client, factory):
    thread = await factory.thread()
    first = await factory.reply(thread=thread, content="first")
    second = await factory.reply(thread=thread, content="second")
    third = await factory.reply(thread=thread, content="third")

    response = await client.get(f"/api/{thread.category.slug}/{thread.slug}/replies")

    assert [item["id"] for item in response.json()["data"]] == [first.id, second.id, third.id]


async def test_fetching_replies_of_an_unknown_thread_is_not_found(client, factory):
    thread = await factory.thread()

    response = await client.get(f"/api/{thread.category.slug}/no-such-thread/replies")

    assert response.status_code == 404
