import pytest

from guessroom.services.games.feed import ChangeFeed, INSERT, UPDATE


def test_subscriber_receives_only_matching_records():
    feed = ChangeFeed()
    received = []
    feed.subscribe('players', 'room_id', 1, lambda event, record: received.append((event, record['id'])))

    feed.publish('players', INSERT, {'id': 10, 'room_id': 1})
    feed.publish('players', INSERT, {'id': 11, 'room_id': 2})
    feed.publish('rooms', UPDATE, {'id': 1})

    assert received == [(INSERT, 10)]


def test_rounds_can_be_watched_by_id_or_room():
    feed = ChangeFeed()
    by_id, by_room = [], []
    feed.subscribe('game_rounds', 'id', 5, lambda e, r: by_id.append(r))
    feed.subscribe('game_rounds', 'room_id', 2, lambda e, r: by_room.append(r))

    feed.publish('game_rounds', INSERT, {'id': 5, 'room_id': 2})

    assert len(by_id) == 1 and len(by_room) == 1


def test_unsubscribe_stops_delivery():
    feed = ChangeFeed()
    received = []
    sub = feed.subscribe('rooms', 'id', 1, lambda e, r: received.append(r))
    feed.publish('rooms', UPDATE, {'id': 1, 'status': 'playing'})
    sub.unsubscribe()
    sub.unsubscribe()
    feed.publish('rooms', UPDATE, {'id': 1, 'status': 'finished'})

    assert [r['status'] for r in received] == ['playing']
    assert not sub.active
    assert feed.subscriber_count('rooms', 'id', 1) == 0


def test_subscription_as_context_manager():
    feed = ChangeFeed()
    with feed.subscribe('guesses', 'round_id', 3, lambda e, r: None) as sub:
        assert feed.subscriber_count('guesses', 'round_id', 3) == 1
    assert not sub.active
    assert feed.subscriber_count('guesses', 'round_id', 3) == 0


def test_unknown_channel_column_is_rejected():
    feed = ChangeFeed()
    with pytest.raises(ValueError):
        feed.subscribe('guesses', 'player_id', 1, lambda e, r: None)


def test_failing_subscriber_does_not_block_others():
    feed = ChangeFeed()
    received = []

    def broken(event, record):
        raise RuntimeError('boom')

    feed.subscribe('rooms', 'id', 1, broken)
    feed.subscribe('rooms', 'id', 1, lambda e, r: received.append(r))
    feed.publish('rooms', UPDATE, {'id': 1})

    assert received == [{'id': 1}]


def test_listener_sees_every_event_in_order():
    feed = ChangeFeed()
    seen = []
    feed.add_listener(lambda table, event, record: seen.append((table, event)))

    feed.publish('rooms', INSERT, {'id': 1})
    feed.publish('players', INSERT, {'id': 1, 'room_id': 1})
    feed.publish('rooms', UPDATE, {'id': 1})

    assert seen == [('rooms', INSERT), ('players', INSERT), ('rooms', UPDATE)]
