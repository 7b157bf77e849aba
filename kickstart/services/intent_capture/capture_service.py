# kickstart/services/intent_capture/capture_service.py
# Capture de l'intention vocale : acquisition/libération du périphérique, durée bornée, lecture exclusive.

from __future__ import annotations

import asyncio
import datetime as dt
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Protocol, Union
from uuid import uuid4

from kickstart.core.errors import DeviceUnavailable
from kickstart.core.logging_config import get_loggers
from kickstart.core.utils import Clock, utcnow
from kickstart.models.task import AudioBlob

logger = get_loggers()[0]


class CaptureDevice(Protocol):
    async def acquire(self) -> None:
        """Réserve le périphérique ; lève `PermissionError`/`OSError` s'il est inaccessible."""
        ...

    async def read_all(self) -> bytes: ...

    async def release(self) -> None: ...


class BufferedCaptureDevice:
    """Périphérique alimenté par morceaux (flux `dataavailable` envoyé par le client).

    Description:
        Tant qu'il est réservé, `feed()` accumule les morceaux audio ; `release()` vide
        le tampon. Une seconde réservation simultanée est refusée.
    """

    def __init__(self, permission_granted: bool = True):
        self.permission_granted = permission_granted
        self.held = False
        self._chunks: list[bytes] = []

    async def acquire(self) -> None:
        if not self.permission_granted:
            raise PermissionError("Microphone permission denied")
        if self.held:
            raise OSError("Capture device busy")
        self.held = True
        self._chunks = []

    def feed(self, chunk: bytes) -> None:
        if not self.held:
            raise RuntimeError("Capture device is not recording")
        self._chunks.append(chunk)

    async def read_all(self) -> bytes:
        return b"".join(self._chunks)

    async def release(self) -> None:
        self.held = False
        self._chunks = []


@dataclass
class CaptureHandle:
    started_at: dt.datetime
    handle_id: str = field(default_factory=lambda: uuid4().hex)
    active: bool = True


def format_duration(seconds: float) -> str:
    """Durée au format `m:ss` (ex. 75 -> "1:15")."""
    total = max(int(seconds), 0)
    return f"{total // 60}:{total % 60:02d}"


class IntentCaptureService:
    """Service de capture de l'intention.

    Description:
        - Une seule capture active à la fois ; le périphérique est libéré par
          `stop_capture`, `discard` ou la sortie du context manager `capture()`, même
          en cas d'erreur.
        - Capture et lecture s'excluent mutuellement.
        - Toutes les opérations sont sérialisées par un verrou asyncio.
        - La durée est mesurée avec l'horloge injectée et bornée par `max_duration_s`.
    """

    def __init__(self, device: CaptureDevice, clock: Clock = utcnow, max_duration_s: float = 120.0):
        self.device = device
        self.clock = clock
        self.max_duration_s = max_duration_s
        self._lock = asyncio.Lock()
        self._handle: Optional[CaptureHandle] = None
        self._last_blob: Optional[AudioBlob] = None
        self._playing: Optional[AudioBlob] = None

    @property
    def is_capturing(self) -> bool:
        return self._handle is not None

    @property
    def is_playing(self) -> bool:
        return self._playing is not None

    @property
    def last_blob(self) -> Optional[AudioBlob]:
        return self._last_blob

    def elapsed_s(self, handle: CaptureHandle) -> float:
        """Durée écoulée depuis le début de la capture, bornée par `max_duration_s`."""
        elapsed = (self.clock() - handle.started_at).total_seconds()
        return min(max(elapsed, 0.0), self.max_duration_s)

    async def start_capture(self) -> CaptureHandle:
        """Démarre l'enregistrement.

        Raises:
            DeviceUnavailable: Permission refusée, périphérique occupé ou capture déjà active.
        """
        async with self._lock:
            if self._handle is not None:
                raise DeviceUnavailable("A capture is already in progress")
            # une lecture en cours est interrompue avant d'ouvrir le micro
            self._playing = None
            try:
                await self.device.acquire()
            except (PermissionError, OSError) as e:
                logger.warning(f"Capture device unavailable: {e}")
                raise DeviceUnavailable(f"Capture device unavailable: {e}") from e
            self._handle = CaptureHandle(started_at=self.clock())
            return self._handle

    async def stop_capture(self, handle: Optional[CaptureHandle] = None) -> Optional[AudioBlob]:
        """Arrête l'enregistrement et renvoie l'audio capturé.

        Description:
            Sans handle actif, ne fait rien et renvoie le dernier blob capturé (ou None).
            Le périphérique est libéré même si la lecture du tampon échoue.
        """
        async with self._lock:
            if handle is None or not handle.active or handle is not self._handle:
                return self._last_blob
            duration = self.elapsed_s(handle)
            try:
                data = await self.device.read_all()
            except OSError as e:
                raise DeviceUnavailable(f"Capture failed: {e}") from e
            finally:
                await self._release(handle)
            self._last_blob = AudioBlob(data=data, duration_s=duration)
            return self._last_blob

    async def discard(self, target: Union[CaptureHandle, AudioBlob, None]) -> None:
        """Abandonne une capture en cours ou oublie un blob, sans produire d'artefact."""
        async with self._lock:
            if isinstance(target, CaptureHandle):
                if target.active and target is self._handle:
                    await self._release(target)
                return
            if target is not None:
                if self._playing is target:
                    self._playing = None
                if self._last_blob is target:
                    self._last_blob = None

    async def play(self, blob: Optional[AudioBlob] = None) -> Optional[AudioBlob]:
        async with self._lock:
            if self._handle is not None:
                raise DeviceUnavailable("Cannot play back while capturing")
            self._playing = blob if blob is not None else self._last_blob
            return self._playing

    async def pause(self) -> None:
        async with self._lock:
            self._playing = None

    @asynccontextmanager
    async def capture(self) -> AsyncIterator[CaptureHandle]:
        """Capture scopée : le périphérique est libéré quelle que soit l'issue du bloc.

        Usage:
            async with service.capture() as handle:
                ...
                blob = await service.stop_capture(handle)
        """
        handle = await self.start_capture()
        try:
            yield handle
        finally:
            if handle.active:
                await self.discard(handle)

    async def _release(self, handle: CaptureHandle) -> None:
        handle.active = False
        self._handle = None
        await self.device.release()
