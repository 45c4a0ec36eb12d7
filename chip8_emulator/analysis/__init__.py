"""
Analysis tools for execution traces.
"""
from .state_recorder import StateRecorder
