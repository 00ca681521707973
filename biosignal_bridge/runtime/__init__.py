"""
Concurrent runtime

Analysis actors and the pipeline that feeds them from the device callback.
"""

from .actors import Actor, BandPowerActor, CardiacActor, StateActor, SetGoal
from .pipeline import Pipeline

__all__ = ['Actor', 'BandPowerActor', 'CardiacActor', 'StateActor', 'SetGoal', 'Pipeline']
