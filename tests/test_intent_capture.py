# tests/test_intent_capture.py

import pytest

from kickstart.core.errors import DeviceUnavailable
from kickstart.models.task import AudioBlob
from kickstart.services.intent_capture.capture_service import (
    BufferedCaptureDevice,
    IntentCaptureService,
    format_duration,
)

from conftest import FixedClock


class FailingReadDevice(BufferedCaptureDevice):
    async def read_all(self) -> bytes:
        raise OSError("stream broken")


def make_service(device=None, max_duration_s=120.0):
    clock = FixedClock()
    device = device or BufferedCaptureDevice()
    return IntentCaptureService(device, clock=clock, max_duration_s=max_duration_s), device, clock


class TestCapture:
    @pytest.mark.asyncio
    async def test_start_stop_returns_blob_and_releases(self):
        service, device, clock = make_service()
        handle = await service.start_capture()
        device.feed(b"abc")
        device.feed(b"def")
        clock.advance(seconds=75)

        blob = await service.stop_capture(handle)

        assert blob.data == b"abcdef"
        assert blob.duration_s == 75
        assert not device.held
        assert not service.is_capturing
        assert format_duration(blob.duration_s) == "1:15"

    @pytest.mark.asyncio
    async def test_duration_is_bounded(self):
        service, device, clock = make_service(max_duration_s=120.0)
        handle = await service.start_capture()
        clock.advance(minutes=10)
        blob = await service.stop_capture(handle)
        assert blob.duration_s == 120.0

    @pytest.mark.asyncio
    async def test_permission_denied(self):
        service, _, _ = make_service(BufferedCaptureDevice(permission_granted=False))
        with pytest.raises(DeviceUnavailable):
            await service.start_capture()
        assert not service.is_capturing

    @pytest.mark.asyncio
    async def test_second_capture_rejected(self):
        service, device, _ = make_service()
        await service.start_capture()
        with pytest.raises(DeviceUnavailable):
            await service.start_capture()
        assert device.held

    @pytest.mark.asyncio
    async def test_stop_without_active_handle_is_noop(self):
        service, _, _ = make_service()
        assert await service.stop_capture(None) is None

        handle = await service.start_capture()
        first = await service.stop_capture(handle)
        assert await service.stop_capture(handle) is first

    @pytest.mark.asyncio
    async def test_device_released_when_read_fails(self):
        service, device, _ = make_service(FailingReadDevice())
        handle = await service.start_capture()
        with pytest.raises(DeviceUnavailable):
            await service.stop_capture(handle)
        assert not device.held
        assert not service.is_capturing

    @pytest.mark.asyncio
    async def test_context_manager_releases_on_error(self):
        service, device, _ = make_service()
        with pytest.raises(RuntimeError):
            async with service.capture():
                assert device.held
                raise RuntimeError("boom")
        assert not device.held
        assert service.last_blob is None

    @pytest.mark.asyncio
    async def test_discard_handle_produces_nothing(self):
        service, device, _ = make_service()
        handle = await service.start_capture()
        device.feed(b"abc")
        await service.discard(handle)
        assert not device.held
        assert service.last_blob is None


class TestPlayback:
    @pytest.mark.asyncio
    async def test_play_during_capture_rejected(self):
        service, _, _ = make_service()
        await service.start_capture()
        with pytest.raises(DeviceUnavailable):
            await service.play(AudioBlob(data=b"x"))

    @pytest.mark.asyncio
    async def test_start_capture_stops_playback(self):
        service, _, _ = make_service()
        await service.play(AudioBlob(data=b"x"))
        assert service.is_playing
        await service.start_capture()
        assert not service.is_playing

    @pytest.mark.asyncio
    async def test_discard_blob_stops_its_playback(self):
        service, device, _ = make_service()
        handle = await service.start_capture()
        device.feed(b"abc")
        blob = await service.stop_capture(handle)

        assert await service.play() is blob
        await service.discard(blob)
        assert not service.is_playing
        assert service.last_blob is None

    @pytest.mark.asyncio
    async def test_pause(self):
        service, _, _ = make_service()
        await service.play(AudioBlob(data=b"x"))
        await service.pause()
        assert not service.is_playing


def test_format_duration():
    assert format_duration(0) == "0:00"
    assert format_duration(9.8) == "0:09"
    assert format_duration(600) == "10:00"
