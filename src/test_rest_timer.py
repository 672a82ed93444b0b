import pytest

from rest_timer import RestFinished, RestTimer


@pytest.fixture
def timer(fake_clock):
    return RestTimer(clock=fake_clock)


@pytest.fixture
def events(timer):
    received = []
    timer.subscribe(received.append)
    return received


def test_countdown_expires_once(timer, events):
    timer.start(30)
    for _ in range(30):
        timer.tick()

    assert events == [RestFinished(reason="expired", total=30)]
    assert timer.state == "idle"
    assert timer.remaining == 0

    timer.tick()
    assert len(events) == 1


def test_skip_publishes_once(timer, events):
    timer.start(30)
    timer.tick()
    timer.skip()

    assert events == [RestFinished(reason="skipped", total=30)]
    for _ in range(40):
        timer.tick()
    assert len(events) == 1
    assert timer.remaining == 0


def test_close_publishes_nothing(timer, events):
    timer.start(10)
    timer.close()

    assert events == []
    assert timer.snapshot().state == "idle"
    assert timer.remaining == 0


def test_idle_skip_and_close_are_noops(timer, events):
    timer.close()
    timer.skip()
    assert events == []
    assert timer.state == "idle"


def test_start_replaces_running_countdown(timer, events):
    timer.start(30)
    timer.tick()
    timer.start(10)

    assert timer.remaining == 10
    assert timer.total == 10
    assert events == []


def test_start_requires_positive_seconds(timer):
    with pytest.raises(ValueError):
        timer.start(0)


def test_catch_up_applies_elapsed_seconds(timer, events, fake_clock):
    timer.start(30)
    fake_clock.advance(12.7)

    assert timer.catch_up() == 12
    assert timer.remaining == 18

    fake_clock.advance(0.5)
    # 13.2s elapsed in total
    assert timer.catch_up() == 1
    assert timer.remaining == 17


def test_catch_up_past_the_end_expires_once(timer, events, fake_clock):
    timer.start(5)
    fake_clock.advance(60)

    assert timer.catch_up() == 5
    assert events == [RestFinished(reason="expired", total=5)]
    assert timer.catch_up() == 0


def test_catch_up_stops_when_listener_restarts(timer, fake_clock):
    timer.subscribe(lambda event: timer.start(20))
    timer.start(5)
    fake_clock.advance(8)

    timer.catch_up()

    assert timer.is_running
    assert timer.remaining == 20


def test_unsubscribe(timer):
    received = []
    unsubscribe = timer.subscribe(received.append)
    unsubscribe()

    timer.start(1)
    timer.tick()
    assert received == []


def test_catch_up_from_clock_zero(fake_clock):
    fake_clock.now = 0.0
    timer = RestTimer(clock=fake_clock)
    timer.start(30)

    fake_clock.now = 5.0
    assert timer.catch_up() == 5

    fake_clock.now = 8.0
    assert timer.catch_up() == 3
    assert timer.remaining == 22
