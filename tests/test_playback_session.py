"""Tests for the playback session state machine."""

import pytest

from core.exceptions import LoadFailed, NoActiveTrack
from core.playback_session import EndOfTrackPolicy, PlaybackSession, SessionState
from tests.support.fakes import FakeOutput


def make_session(catalog, output, clock, policy=EndOfTrackPolicy.STOP):
    return PlaybackSession(catalog, output, clock=clock, end_policy=policy)


def state_of(session):
    return (session.state, session.current_index, session.is_paused, session.total, session.elapsed())


class TestLoad:
    """Test PlaybackSession.load."""

    @pytest.fixture
    def session(self, catalog, fake_output, clock):
        return make_session(catalog, fake_output, clock)

    def test_initial_state_is_empty(self, session):
        assert session.state == SessionState.EMPTY
        assert session.current_index is None
        assert session.elapsed() is None
        assert session.total is None

    @pytest.mark.parametrize('index', [0, 1, 2])
    def test_load_sets_current_index(self, session, index):
        session.load(index)
        assert session.current_index == index
        assert session.state == SessionState.PLAYING
        assert session.is_paused is False
        assert 0.0 <= session.elapsed() <= session.total

    def test_load_starts_sink(self, session, fake_output):
        session.load(0)
        handle = fake_output.handles[0]
        assert handle.playing is True
        assert handle.path.name == 'a.mp3'

    def test_load_while_playing_keeps_one_sink(self, session, fake_output):
        session.load(0)
        session.load(2)
        assert len(fake_output.handles) == 2
        assert fake_output.handles[0].stopped is True
        assert fake_output.live_handles == [fake_output.handles[1]]

    def test_load_while_paused_releases_previous(self, session, fake_output):
        session.load(0)
        session.toggle_pause()
        session.load(1)
        assert fake_output.handles[0].stopped is True
        assert len(fake_output.live_handles) == 1
        assert session.is_paused is False

    def test_previous_sink_stopped_before_next_opened(self, catalog, clock):
        events = []

        class OrderedOutput(FakeOutput):
            def open(self, path):
                events.append(('open', path.name, [h.stopped for h in self.handles]))
                return super().open(path)

        output = OrderedOutput()
        session = make_session(catalog, output, clock)
        session.load(0)
        session.load(1)
        assert events[1] == ('open', 'b.mp3', [True])

    def test_load_resets_elapsed(self, session, clock):
        session.load(0)
        clock.advance(42)
        session.load(1)
        assert session.elapsed() == 0.0

    def test_load_unknown_duration(self, catalog, clock):
        output = FakeOutput(durations={'a.mp3': None})
        session = make_session(catalog, output, clock)
        session.load(0)
        clock.advance(12.5)
        assert session.total is None
        assert session.elapsed() == 12.5
        assert session.snapshot().progress is None

    def test_load_out_of_range_leaves_state(self, session, fake_output):
        session.load(1)
        before = state_of(session)
        with pytest.raises(IndexError):
            session.load(3)
        with pytest.raises(IndexError):
            session.load(-1)
        assert state_of(session) == before
        assert len(fake_output.live_handles) == 1

    def test_failed_load_returns_to_empty(self, catalog, clock):
        output = FakeOutput(broken={'b.mp3'})
        session = make_session(catalog, output, clock)
        session.load(0)

        with pytest.raises(LoadFailed) as exc_info:
            session.load(1)

        assert exc_info.value.index == 1
        assert session.state == SessionState.EMPTY
        assert session.current_index is None
        assert session.elapsed() is None
        assert output.live_handles == []

    def test_corrupt_first_track_then_valid_load(self, catalog, clock):
        output = FakeOutput(broken={'a.mp3'})
        session = make_session(catalog, output, clock)

        with pytest.raises(LoadFailed):
            session.load(0)
        assert session.current_index is None

        session.load(1)
        assert session.current_index == 1
        assert session.state == SessionState.PLAYING

    def test_failed_play_stops_opened_handle(self, catalog, clock):
        class NoPlayOutput(FakeOutput):
            def open(self, path):
                handle, total = super().open(path)
                handle.stop()  # play() on a stopped handle raises
                return handle, total

        output = NoPlayOutput()
        session = make_session(catalog, output, clock)
        with pytest.raises(LoadFailed):
            session.load(0)
        assert session.state == SessionState.EMPTY

    def test_select_track_is_load(self, session):
        session.select_track(2)
        assert session.current_index == 2


class TestTogglePause:
    """Test pause/resume and elapsed-time accounting."""

    @pytest.fixture
    def session(self, catalog, fake_output, clock):
        return make_session(catalog, fake_output, clock)

    def test_toggle_pause_when_empty(self, session):
        with pytest.raises(NoActiveTrack):
            session.toggle_pause()
        assert session.state == SessionState.EMPTY
        assert session.current_index is None

    def test_pause_and_resume_sink(self, session, fake_output):
        session.load(0)
        session.toggle_pause()
        assert session.is_paused is True
        assert fake_output.handles[0].playing is False

        session.toggle_pause()
        assert session.is_paused is False
        assert fake_output.handles[0].playing is True

    def test_elapsed_freezes_while_paused(self, session, clock):
        session.load(0)
        clock.advance(10)
        session.toggle_pause()
        clock.advance(60)
        assert session.elapsed() == 10.0

    def test_paused_elapsed_is_not_total(self, session, clock):
        session.load(0)
        clock.advance(3)
        session.toggle_pause()
        assert session.elapsed() == 3.0
        assert session.elapsed() != session.total

    def test_round_trip_without_time_passing(self, session, clock):
        session.load(0)
        clock.advance(25)
        before = session.elapsed()
        session.toggle_pause()
        session.toggle_pause()
        assert session.elapsed() == pytest.approx(before)

    def test_resume_continues_from_frozen_point(self, session, clock):
        session.load(0)
        clock.advance(10)
        session.toggle_pause()
        clock.advance(100)
        session.toggle_pause()
        clock.advance(5)
        assert session.elapsed() == pytest.approx(15.0)

    def test_multiple_pause_cycles_accumulate(self, session, clock):
        session.load(0)
        for _ in range(4):
            clock.advance(7)
            session.toggle_pause()
            clock.advance(30)
            session.toggle_pause()
        clock.advance(2)
        assert session.elapsed() == pytest.approx(30.0)

    def test_elapsed_clamped_to_total(self, catalog, clock):
        output = FakeOutput(durations={'a.mp3': 20.0})
        session = make_session(catalog, output, clock)
        session.load(0)
        clock.advance(500)
        assert session.elapsed() == 20.0

    def test_elapsed_never_negative(self, session, clock):
        session.load(0)
        clock.advance(-5)
        assert session.elapsed() == 0.0

    def test_elapsed_monotonic_while_playing(self, catalog, clock):
        output = FakeOutput(durations={'a.mp3': 30.0})
        session = make_session(catalog, output, clock)
        session.load(0)
        readings = []
        for _ in range(50):
            clock.advance(0.9)
            readings.append(session.elapsed())
        assert readings == sorted(readings)
        assert max(readings) <= 30.0

    def test_failed_resume_returns_to_empty(self, session, fake_output):
        session.load(1)
        session.toggle_pause()
        fake_output.handles[0].play_error = "device gone"

        with pytest.raises(LoadFailed) as exc_info:
            session.toggle_pause()

        assert exc_info.value.index == 1
        assert session.state == SessionState.EMPTY
        assert session.current_index is None
        assert fake_output.live_handles == []


class TestNavigation:
    """Test next/prev."""

    @pytest.fixture
    def session(self, catalog, fake_output, clock):
        return make_session(catalog, fake_output, clock)

    def test_next_and_prev_scenario(self, session):
        session.load(0)
        assert session.current_index == 0
        assert session.next() is True
        assert session.current_index == 1
        assert session.next() is True
        assert session.current_index == 2
        assert session.next() is False
        assert session.current_index == 2
        assert session.prev() is True
        assert session.current_index == 1

    def test_next_at_last_is_noop(self, session, fake_output, clock):
        session.load(2)
        clock.advance(4)
        before = state_of(session)
        assert session.next() is False
        assert state_of(session) == before
        assert len(fake_output.handles) == 1

    def test_prev_at_first_is_noop(self, session, fake_output, clock):
        session.load(0)
        clock.advance(4)
        session.toggle_pause()
        before = state_of(session)
        assert session.prev() is False
        assert state_of(session) == before
        assert len(fake_output.handles) == 1

    def test_next_prev_when_empty(self, session, fake_output):
        assert session.next() is False
        assert session.prev() is False
        assert session.state == SessionState.EMPTY
        assert fake_output.handles == []

    def test_next_from_paused_plays(self, session):
        session.load(0)
        session.toggle_pause()
        session.next()
        assert session.current_index == 1
        assert session.is_paused is False

    def test_next_into_broken_track(self, catalog, clock):
        output = FakeOutput(broken={'b.mp3'})
        session = make_session(catalog, output, clock)
        session.load(0)
        with pytest.raises(LoadFailed):
            session.next()
        assert session.current_index is None
        assert output.live_handles == []


class TestEndOfTrack:
    """Test poll() and the end-of-track policies."""

    def _finish(self, output):
        output.live_handles[-1].finished = True

    def test_poll_while_playing_is_noop(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock)
        session.load(0)
        assert session.poll() is False
        assert session.state == SessionState.PLAYING

    def test_poll_when_empty(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock)
        assert session.poll() is False

    def test_paused_track_not_polled(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock)
        session.load(0)
        session.toggle_pause()
        self._finish(fake_output)
        assert session.poll() is False
        assert session.state == SessionState.PAUSED

    def test_stop_policy_enters_ended(self, catalog, clock):
        output = FakeOutput(durations={'a.mp3': 60.0})
        session = make_session(catalog, output, clock)
        session.load(0)
        clock.advance(59.5)
        self._finish(output)

        assert session.poll() is True
        assert session.state == SessionState.ENDED
        assert session.current_index == 0
        clock.advance(100)
        assert session.elapsed() == 60.0

    def test_ended_unknown_duration_freezes_elapsed(self, catalog, clock):
        output = FakeOutput(durations={'a.mp3': None})
        session = make_session(catalog, output, clock)
        session.load(0)
        clock.advance(33)
        self._finish(output)
        session.poll()
        clock.advance(10)
        assert session.elapsed() == 33.0

    def test_toggle_pause_replays_ended_track(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock)
        session.load(1)
        clock.advance(200)
        self._finish(fake_output)
        session.poll()

        session.toggle_pause()
        assert session.state == SessionState.PLAYING
        assert session.current_index == 1
        assert session.elapsed() == 0.0
        assert len(fake_output.live_handles) == 1

    def test_advance_policy_loads_next(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock, EndOfTrackPolicy.ADVANCE)
        session.load(0)
        self._finish(fake_output)
        assert session.poll() is True
        assert session.current_index == 1
        assert session.state == SessionState.PLAYING
        assert len(fake_output.live_handles) == 1

    def test_advance_policy_stops_after_last(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock, EndOfTrackPolicy.ADVANCE)
        session.load(2)
        self._finish(fake_output)
        session.poll()
        assert session.current_index == 2
        assert session.state == SessionState.ENDED

    def test_repeat_policy_reloads_same(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock, EndOfTrackPolicy.REPEAT)
        session.load(1)
        clock.advance(180)
        self._finish(fake_output)
        session.poll()
        assert session.current_index == 1
        assert session.state == SessionState.PLAYING
        assert session.elapsed() == 0.0
        assert len(fake_output.handles) == 2

    def test_stream_error_is_a_load_failure(self, catalog, clock):
        output = FakeOutput(durations={'a.mp3': 200.0})
        session = make_session(catalog, output, clock)
        session.load(0)
        clock.advance(0.2)
        output.live_handles[-1].fail("Could not decode stream")

        with pytest.raises(LoadFailed) as exc_info:
            session.poll()

        assert exc_info.value.index == 0
        assert "Could not decode stream" in str(exc_info.value.cause)
        assert session.state == SessionState.EMPTY
        assert session.elapsed() is None
        assert output.live_handles == []

    def test_stream_error_does_not_advance(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock, EndOfTrackPolicy.ADVANCE)
        session.load(0)
        fake_output.live_handles[-1].fail("boom")
        with pytest.raises(LoadFailed):
            session.poll()
        assert len(fake_output.handles) == 1
        assert session.current_index is None


class TestSnapshotAndClose:
    """Test snapshot() and close()."""

    def test_snapshot_of_empty_session(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock)
        snapshot = session.snapshot()
        assert snapshot.track_names == ('a.mp3', 'b.mp3', 'c.mp3')
        assert snapshot.current_index is None
        assert snapshot.is_loaded is False
        assert snapshot.is_paused is False
        assert snapshot.elapsed is None
        assert snapshot.total is None
        assert snapshot.progress is None

    def test_snapshot_while_playing(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock)
        session.load(1)
        clock.advance(45)
        snapshot = session.snapshot()
        assert snapshot.current_index == 1
        assert snapshot.current_name == 'b.mp3'
        assert snapshot.elapsed == 45.0
        assert snapshot.total == 180.0
        assert snapshot.progress == pytest.approx(0.25)
        assert snapshot.has_previous is True
        assert snapshot.has_next is True

    def test_snapshot_is_immutable(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock)
        snapshot = session.snapshot()
        with pytest.raises(AttributeError):
            snapshot.current_index = 2

    def test_close_releases_sink(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock)
        session.load(0)
        session.close()
        assert fake_output.live_handles == []
        assert session.state == SessionState.EMPTY
        assert session.current_index is None

    def test_close_when_empty(self, catalog, fake_output, clock):
        session = make_session(catalog, fake_output, clock)
        session.close()
        assert session.state == SessionState.EMPTY
