# cabinet_project_root/tests/test_events.py
# CHANGE FEED TESTS

from records import ChangeEvent, ChangeFeed, ChangeTopic, ChangeType


def _event(topic=ChangeTopic.PATIENTS) -> ChangeEvent:
    return ChangeEvent(topic=topic, change_type=ChangeType.UPDATE, record_id="p1")

def test_publish_reaches_only_topic_subscribers():
    feed = ChangeFeed()
    patients, medications = [], []
    feed.subscribe(ChangeTopic.PATIENTS, patients.append)
    feed.subscribe(ChangeTopic.MEDICATIONS, medications.append)

    assert feed.publish(_event()) == 1
    assert len(patients) == 1 and medications == []

def test_failing_subscriber_does_not_block_others(caplog):
    feed = ChangeFeed()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    feed.subscribe(ChangeTopic.PATIENTS, broken)
    feed.subscribe(ChangeTopic.PATIENTS, received.append)

    assert feed.publish(_event()) == 1
    assert len(received) == 1
    assert "boom" in caplog.text

def test_unsubscribe():
    feed = ChangeFeed()
    received = []
    unsubscribe = feed.subscribe("patients", received.append)
    assert feed.subscriber_count(ChangeTopic.PATIENTS) == 1

    unsubscribe()
    unsubscribe()
    assert feed.subscriber_count(ChangeTopic.PATIENTS) == 0
    assert feed.publish(_event()) == 0
    assert received == []
