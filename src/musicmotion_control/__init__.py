from .audio import SynthEngine, VoiceChannel
from .allocator import HandState, MelodyVoice, PolyphonyAllocator, VoiceDiff, diff_voices
from .config import EngineConfig, ScaleConfig
from .controller import InstrumentController, InstrumentSnapshot
from .feedback import VisualFeedback
from .gesture_filter import GestureChangeFilter
from .quantizer import get_chord, get_note
from .types import Chord, HandLandmark, HandSample, Pitch
from .utils import normalize_position

__all__ = [
    "Chord",
    "EngineConfig",
    "GestureChangeFilter",
    "HandLandmark",
    "HandSample",
    "HandState",
    "InstrumentController",
    "InstrumentSnapshot",
    "MelodyVoice",
    "Pitch",
    "PolyphonyAllocator",
    "ScaleConfig",
    "SynthEngine",
    "VisualFeedback",
    "VoiceChannel",
    "VoiceDiff",
    "diff_voices",
    "get_chord",
    "get_note",
    "normalize_position",
]
