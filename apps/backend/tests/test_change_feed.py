import asyncio

from jobos.models import Contact, Job
from jobos.routers.events import event_stream
from jobos.services.change_feed import ChangeEvent, ChangeFeed, change_feed


def drain(queue: asyncio.Queue) -> list[ChangeEvent]:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


async def test_events_are_published_only_after_commit(db):
    async with change_feed.subscribe() as queue:
        job = Job(company="Acme", role="Engineer")
        db.add(job)
        await db.flush()

        assert queue.empty()

        await db.commit()
        assert drain(queue) == [ChangeEvent("jobs", "insert", job.id)]

        job.status = "Applied"
        await db.commit()
        await db.delete(job)
        await db.commit()

        assert drain(queue) == [
            ChangeEvent("jobs", "update", job.id),
            ChangeEvent("jobs", "delete", job.id),
        ]


async def test_rolled_back_writes_are_not_published(db):
    async with change_feed.subscribe() as queue:
        db.add(Contact(name="Recruiter"))
        await db.flush()
        await db.rollback()

        assert queue.empty()


async def test_unsubscribed_queues_stop_receiving():
    feed = ChangeFeed()

    async with feed.subscribe() as queue:
        assert feed.subscriber_count == 1
        feed.publish(ChangeEvent("jobs", "delete"))

    feed.publish(ChangeEvent("jobs", "insert", 1))

    assert feed.subscriber_count == 0
    assert drain(queue) == [ChangeEvent("jobs", "delete")]


async def test_full_subscriber_drops_events_without_blocking():
    feed = ChangeFeed(queue_size=1)

    async with feed.subscribe() as queue:
        feed.publish(ChangeEvent("jobs", "insert", 1))
        feed.publish(ChangeEvent("jobs", "insert", 2))

        assert drain(queue) == [ChangeEvent("jobs", "insert", 1)]


async def test_event_stream_formats_server_sent_events():
    feed = ChangeFeed()
    stream = event_stream(feed, keepalive=0.01)

    assert await stream.__anext__() == ": keepalive\n\n"

    feed.publish(ChangeEvent("profiles", "update", 7))
    message = await stream.__anext__()
    await stream.aclose()

    assert message == (
        'event: change\ndata: {"table": "profiles", "action": "update", "id": 7}\n\n'
    )
    assert feed.subscriber_count == 0
