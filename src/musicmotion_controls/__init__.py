from .controls import Button, Control, DraggablePoint, Slider, Wheel
from .panel import ControlPanel
from .signal_buffer import ExtrapolationPolicy, HandSignalBuffer
from .tracker import DualHandTracker
from .types import FrameResult, Hand, HandDetection, HandState, Observation, TwoHandsState

__all__ = [
    "Button",
    "Control",
    "ControlPanel",
    "DraggablePoint",
    "DualHandTracker",
    "ExtrapolationPolicy",
    "FrameResult",
    "Hand",
    "HandDetection",
    "HandSignalBuffer",
    "HandState",
    "Observation",
    "Slider",
    "TwoHandsState",
    "Wheel",
]
