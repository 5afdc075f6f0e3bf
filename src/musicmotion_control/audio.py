from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

import numpy as np

from .types import Pitch
from .utils import clamp, db_to_gain

logger = logging.getLogger(__name__)

Notes = Union[Pitch, Iterable[Pitch]]

# Event ordering for equal timestamps: releases land before pitch moves before attacks.
_RELEASE, _PITCH, _ATTACK = 0, 1, 2


class SynthError(RuntimeError):
    """Raised by the synth facade when it cannot honour a call."""


class VoiceExhaustedError(SynthError):
    """An attack would exceed the channel's polyphony."""


@dataclass(frozen=True)
class SoundPreset:
    waveform: str  # sine / triangle / sawtooth / square
    partials: int  # >1 adds harmonics to the sine
    attack: float
    decay: float
    sustain: float
    release: float


PRESETS: Dict[str, SoundPreset] = {
    "synth": SoundPreset("sine", 1, 0.05, 0.2, 0.6, 0.8),
    "bell": SoundPreset("sine", 4, 0.01, 0.3, 0.2, 1.5),
    "pad": SoundPreset("sine", 8, 0.4, 0.7, 0.6, 2.0),
    "pluck": SoundPreset("triangle", 1, 0.01, 0.1, 0.1, 0.3),
    "piano": SoundPreset("sawtooth", 1, 0.001, 0.05, 0.7, 0.3),
}


def midi_to_freq(midi_note: int) -> float:
    """Convert MIDI note number to frequency in Hz."""
    return 440.0 * (2.0 ** ((midi_note - 69) / 12.0))


def oscillate(waveform: str, phase: np.ndarray, partials: int = 1) -> np.ndarray:
    """Evaluate a waveform at the given phases (radians)."""
    if waveform == "triangle":
        return (2.0 / np.pi) * np.arcsin(np.sin(phase))
    if waveform == "sawtooth":
        return 2.0 * np.mod(phase / (2.0 * np.pi), 1.0) - 1.0
    if waveform == "square":
        return np.sign(np.sin(phase))
    if partials <= 1:
        return np.sin(phase)
    ks = np.arange(1, partials + 1)
    weights = 1.0 / ks
    wave = np.sin(np.outer(ks, phase)).T @ weights
    return wave / weights.sum()


def _as_list(notes: Notes) -> List[Pitch]:
    if isinstance(notes, Pitch):
        return [notes]
    out: List[Pitch] = []
    for n in notes:
        if not isinstance(n, Pitch):
            raise SynthError(f"Not a pitch: {n!r}")
        if n not in out:
            out.append(n)
    return out


class _Voice:
    """One sounding note: oscillator phase, gliding frequency and a linear ADSR."""

    __slots__ = ("freq", "target_freq", "phase", "level", "peak", "stage")

    def __init__(self, freq: float, peak: float) -> None:
        self.freq = freq
        self.target_freq = freq
        self.phase = 0.0
        self.level = 0.0
        self.peak = peak
        self.stage = "attack"  # attack / decay / sustain / release

    def trigger(self, peak: float) -> None:
        self.peak = peak
        self.stage = "attack"

    @property
    def finished(self) -> bool:
        return self.stage == "release" and self.level <= 1e-4


class VoiceChannel:
    """
    A polyphonic voice group (melody or harmony) honouring timestamped
    note-on / note-off / glide instructions.

    Calls only schedule events; `render()` applies every event that is due and
    synthesizes the next block. Events are applied in timestamp order, with
    releases first on ties, so a voice never sounds at two pitches because of
    competing instructions. A release also cancels any not-yet-applied attack
    or glide towards the released notes, back along any chain of glides. A
    glide from a voice that is not sounding attacks the target note instead.
    """

    def __init__(
        self,
        name: str,
        preset: Union[str, SoundPreset] = "pad",
        max_polyphony: int = 14,
        sample_rate: int = 44100,
        volume_db: float = -12.0,
        portamento: float = 0.02,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(preset, str):
            if preset not in PRESETS:
                raise ValueError(f"Unknown preset '{preset}'. Available: {list(PRESETS.keys())}")
            preset = PRESETS[preset]
        self.name = name
        self.preset = preset
        self.max_polyphony = max_polyphony
        self.sample_rate = sample_rate
        self.portamento = portamento
        self.clock = clock
        self.volume_db = volume_db

        self._lock = threading.Lock()
        self._events: List[Tuple[float, int, int, str, tuple]] = []
        self._seq = itertools.count()
        self._voices: Dict[Pitch, _Voice] = {}
        # Notes held according to scheduled (not yet applied) events.
        self._held: Set[Pitch] = set()
        self._last_velocity = 0.8

    # -- facade -----------------------------------------------------------

    def now(self) -> float:
        return self.clock()

    @property
    def held(self) -> Set[Pitch]:
        with self._lock:
            return set(self._held)

    def _push(self, when: Optional[float], order: int, kind: str, payload: tuple) -> None:
        when = self.clock() if when is None else when
        heapq.heappush(self._events, (when, order, next(self._seq), kind, payload))

    def attack(self, notes: Notes, velocity: float = 0.8, time: Optional[float] = None) -> None:
        pitches = _as_list(notes)
        velocity = clamp(float(velocity), 0.0, 1.0)
        with self._lock:
            if len(self._held.union(pitches)) > self.max_polyphony:
                raise VoiceExhaustedError(
                    f"{self.name}: {len(self._held.union(pitches))} voices requested, max {self.max_polyphony}"
                )
            self._held.update(pitches)
            self._last_velocity = velocity
            for p in pitches:
                self._push(time, _ATTACK, "attack", (p, velocity))

    def _cancel_pending(self, pitches: Optional[Set[Pitch]]) -> List[Pitch]:
        """
        Drop scheduled attacks and glides that would (re)start `pitches` (all of
        them when None). Glide chains are followed back to the voice that is
        actually sounding; returns the source voices of every dropped glide.
        """
        targets = None if pitches is None else set(pitches)
        events, sources = self._events, []
        while True:
            kept, grew = [], False
            for event in events:
                kind, payload = event[3], event[4]
                if kind == "attack" and (targets is None or payload[0] in targets):
                    continue
                if kind == "pitch" and (targets is None or payload[1] in targets):
                    source = payload[0]
                    if source not in sources:
                        sources.append(source)
                    if targets is not None and source not in targets:
                        targets.add(source)
                        grew = True
                    continue
                kept.append(event)
            events = kept
            if not grew:
                break
        if len(events) != len(self._events):
            heapq.heapify(events)
            self._events = events
        return sources

    def release(self, notes: Notes, time: Optional[float] = None) -> None:
        pitches = _as_list(notes)
        with self._lock:
            self._held.difference_update(pitches)
            sources = [s for s in self._cancel_pending(set(pitches)) if s not in pitches]
            for p in pitches + sources:
                self._push(time, _RELEASE, "release", (p,))

    def release_all(self, time: Optional[float] = None) -> None:
        with self._lock:
            self._held.clear()
            self._cancel_pending(None)
            self._push(time, _RELEASE, "release_all", ())

    def set_pitch(self, voice: Pitch, note: Pitch, time: Optional[float] = None) -> None:
        """Glide the voice currently playing `voice` to `note` without retriggering it."""
        with self._lock:
            self._held.discard(voice)
            self._held.add(note)
            self._push(time, _PITCH, "pitch", (voice, note))

    def set_volume(self, decibels: float) -> None:
        self.volume_db = float(decibels)

    # -- rendering --------------------------------------------------------

    def _apply(self, kind: str, payload: tuple) -> None:
        if kind == "attack":
            pitch, velocity = payload
            voice = self._voices.get(pitch)
            if voice is None:
                self._voices[pitch] = _Voice(midi_to_freq(pitch.midi), velocity)
            else:
                voice.trigger(velocity)
        elif kind == "release":
            voice = self._voices.get(payload[0])
            if voice is not None:
                voice.stage = "release"
        elif kind == "release_all":
            for voice in self._voices.values():
                voice.stage = "release"
        elif kind == "pitch":
            old, new = payload
            voice = self._voices.pop(old, None)
            if voice is None:
                logger.debug("%s: glide from silent voice %s, attacking %s", self.name, old, new)
                self._apply("attack", (new, self._last_velocity))
                return
            # A stale voice already on the target pitch is replaced by the gliding one.
            self._voices.pop(new, None)
            voice.target_freq = midi_to_freq(new.midi)
            self._voices[new] = voice

    def _envelope(self, voice: _Voice, dur: float) -> float:
        """Advance the envelope by `dur` seconds and return the level at the end."""
        p = self.preset
        level = voice.level
        if voice.stage == "attack":
            level += voice.peak * dur / max(p.attack, 1e-4)
            if level >= voice.peak:
                level = voice.peak
                voice.stage = "decay"
        elif voice.stage == "decay":
            floor = voice.peak * p.sustain
            level -= voice.peak * (1.0 - p.sustain) * dur / max(p.decay, 1e-4)
            if level <= floor:
                level = floor
                voice.stage = "sustain"
        elif voice.stage == "release":
            level -= max(voice.peak, 1e-3) * dur / max(p.release, 1e-4)
            level = max(level, 0.0)
        return level

    def render(self, frames: int, now: Optional[float] = None) -> np.ndarray:
        now = self.clock() if now is None else now
        out = np.zeros(frames, dtype=np.float64)
        dur = frames / self.sample_rate
        with self._lock:
            while self._events and self._events[0][0] <= now:
                _, _, _, kind, payload = heapq.heappop(self._events)
                self._apply(kind, payload)

            glide = 1.0 if self.portamento <= 0 else min(1.0, dur / self.portamento)
            for pitch, voice in list(self._voices.items()):
                end_freq = voice.freq + (voice.target_freq - voice.freq) * glide
                freqs = np.linspace(voice.freq, end_freq, frames, endpoint=False)
                phase = voice.phase + 2.0 * np.pi * np.cumsum(freqs) / self.sample_rate
                end_level = self._envelope(voice, dur)
                env = np.linspace(voice.level, end_level, frames, endpoint=False)
                out += env * oscillate(self.preset.waveform, phase, self.preset.partials)

                voice.freq = end_freq
                voice.phase = float(phase[-1] % (2.0 * np.pi)) if frames else voice.phase
                voice.level = end_level
                if voice.finished:
                    del self._voices[pitch]
        return out * db_to_gain(self.volume_db)


class SynthEngine:
    """
    Real-time output for the two voice groups.

    Owns a sounddevice output stream whose callback mixes the melody and harmony
    channels and soft-limits the sum.
    """

    def __init__(
        self,
        preset: str = "pad",
        sample_rate: int = 44100,
        blocksize: int = 512,
        melody_db: float = -10.0,
        harmony_db: float = -14.0,
        harmony_polyphony: int = 14,
    ) -> None:
        self.sample_rate = sample_rate
        self.blocksize = blocksize
        self.channels: Dict[str, VoiceChannel] = {
            "melody": VoiceChannel(
                "melody", preset, max_polyphony=1, sample_rate=sample_rate, volume_db=melody_db, portamento=0.02
            ),
            "harmony": VoiceChannel(
                "harmony", preset, max_polyphony=harmony_polyphony, sample_rate=sample_rate, volume_db=harmony_db
            ),
        }
        self._stream = None

    @property
    def melody(self) -> VoiceChannel:
        return self.channels["melody"]

    @property
    def harmony(self) -> VoiceChannel:
        return self.channels["harmony"]

    def now(self) -> float:
        return time.monotonic()

    def set_volume(self, channel: str, decibels: float) -> None:
        self.channels[channel].set_volume(decibels)

    def release_all(self) -> None:
        for ch in self.channels.values():
            ch.release_all()

    def start(self) -> None:
        """Start the audio stream."""
        if self._stream is not None:
            return
        try:
            import sounddevice as sd  # type: ignore
        except OSError as e:
            raise RuntimeError(
                "sounddevice could not load PortAudio. Install the PortAudio library "
                "(e.g. `apt install libportaudio2` or `brew install portaudio`)."
            ) from e

        self._stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=1,
            callback=self._audio_callback,
            blocksize=self.blocksize,
        )
        self._stream.start()
        logger.info("Audio stream started (%d Hz, block %d)", self.sample_rate, self.blocksize)

    def stop(self) -> None:
        """Stop the audio stream."""
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            logger.info("Audio stream stopped")

    def render(self, frames: int, now: Optional[float] = None) -> np.ndarray:
        now = self.now() if now is None else now
        mix = sum(ch.render(frames, now) for ch in self.channels.values())
        return np.tanh(mix)

    def _audio_callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug("audio status: %s", status)
        outdata[:, 0] = self.render(frames).astype(np.float32)

    def __enter__(self) -> "SynthEngine":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release_all()
        self.stop()
