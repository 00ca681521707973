"""
Mental state detection

This module implements the HRV-based state classifier and the temporal
aggregator that turns classifier ticks into a stable displayed state.
"""

from .classifier import ClassifierPolicy, DEFAULT_POLICY, classify, load_policy
from .aggregator import TemporalStateAggregator

__all__ = ['ClassifierPolicy', 'DEFAULT_POLICY', 'classify', 'load_policy', 'TemporalStateAggregator']
