"""
Tests for the AbletonOSC live session.

A fake transport answers queries from a table, so no Ableton or UDP
sockets are needed.
"""

from unittest.mock import Mock

import pytest

from cc_router.live_session import LiveSessionError
from cc_router.osc_session import OscClient, OscLiveSession, OscTimeout
from cc_router.router import CCRouter


class FakeTransport:
    """Replies to (address, args) from a dict and records sends."""

    def __init__(self, replies):
        self.replies = replies
        self.queries = []
        self.sent = []
        self.closed = False

    def query(self, address, *args):
        self.queries.append((address, args))
        return self.replies[(address, args)]

    def send(self, address, *args):
        self.sent.append((address, args))

    def close(self):
        self.closed = True


@pytest.fixture
def replies():
    # Selected track 2 holds the router and a synth
    return {
        ("/live/view/get/selected_track", ()): (2,),
        ("/live/track/get/name", (2,)): (2, "Bass"),
        ("/live/track/get/num_devices", (2,)): (2, 2),
        ("/live/device/get/name", (2, 0)): (2, 0, "CC Router"),
        ("/live/device/get/name", (2, 1)): (2, 1, "Diva"),
        ("/live/device/get/num_parameters", (2, 1)): (2, 1, 3),
        ("/live/device/get/parameters/name", (2, 1)): (2, 1, "Device On", "Cutoff", "Resonance"),
    }


@pytest.fixture
def transport(replies):
    return FakeTransport(replies)


class TestOscLiveSession:

    def test_selected_track(self, transport):
        track = OscLiveSession(transport).resolve_selected_track()
        assert track.id() == 2
        assert track.name() == "Bass"
        assert track.device_count() == 2

    @pytest.mark.parametrize("reply", [(), (None,), (-1,)])
    def test_no_selected_track(self, transport, replies, reply):
        replies[("/live/view/get/selected_track", ())] = reply
        assert OscLiveSession(transport).resolve_selected_track() is None

    def test_device_strips_echoed_indices(self, transport):
        session = OscLiveSession(transport)
        device = session.resolve_device(session.resolve_selected_track(), 1)
        assert device.index() == 1
        assert device.name() == "Diva"
        assert device.parameter_count() == 3

    def test_parameter_name_and_write(self, transport):
        session = OscLiveSession(transport)
        device = session.resolve_device(session.resolve_selected_track(), 1)
        parameter = session.resolve_parameter(device, 2)

        assert parameter.name() == "Resonance"
        parameter.set_value(0.5)

        assert transport.sent == [("/live/device/set/parameter/value", (2, 1, 2, 0.5))]

    def test_short_reply(self, transport, replies):
        replies[("/live/device/get/name", (2, 1))] = (2,)
        session = OscLiveSession(transport)
        device = session.resolve_device(session.resolve_selected_track(), 1)
        with pytest.raises(LiveSessionError):
            device.name()

    def test_close(self, transport):
        OscLiveSession(transport).close()
        assert transport.closed

    def test_router_over_osc(self, transport):
        router = CCRouter()
        router.attach(OscLiveSession(transport))

        result = router.handle_cc_message(13, 127)

        assert result.success
        assert result.status == "OK: Dev[1]:Diva > Device On=1.00"
        assert transport.sent == [("/live/device/set/parameter/value", (2, 1, 0, 1.0))]

    def test_router_timeout_becomes_status(self, transport, replies):
        def timeout(address, *args):
            raise OscTimeout(f"No reply to {address} within 2.0s")
        transport.query = timeout
        router = CCRouter()
        router.attach(OscLiveSession(transport))

        result = router.handle_cc_message(13, 127)

        assert not result.success
        assert result.status.startswith("ERROR: No reply to /live/view/get/selected_track")


class TestOscClient:

    def test_query_requires_connect(self):
        with pytest.raises(LiveSessionError):
            OscClient().query("/live/song/get/tempo")

    def test_send_requires_connect(self):
        with pytest.raises(LiveSessionError):
            OscClient().send("/live/song/start_playing")

    def test_query_returns_reply(self):
        client = OscClient(timeout=1.0)
        client._client = Mock()
        client._client.send_message.side_effect = \
            lambda address, args: client._on_reply(address, 120.0)

        assert client.query("/live/song/get/tempo") == (120.0,)
        client._client.send_message.assert_called_once_with("/live/song/get/tempo", [])

    def test_stale_replies_are_dropped(self):
        client = OscClient(timeout=1.0)
        client._on_reply("/live/song/get/tempo", 90.0)
        client._client = Mock()
        client._client.send_message.side_effect = \
            lambda address, args: client._on_reply(address, 128.0)

        assert client.query("/live/song/get/tempo") == (128.0,)

    def test_query_timeout(self):
        client = OscClient(timeout=0.01)
        client._client = Mock()
        with pytest.raises(OscTimeout):
            client.query("/live/song/get/tempo")
