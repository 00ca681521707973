"""
Mental-state classification from HRV features

A pure threshold mapping from (SDNN, RMSSD, pNN50) to an EmotionalState.
Thresholds are a policy object that can be personalized through a JSON
profile; the mapping itself keeps no state between calls.
"""

import json
import logging
import math
import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from ..core.data_types import EmotionalState


@dataclass(frozen=True)
class ClassifierPolicy:
    """Threshold set for `classify` (ms for SDNN/RMSSD, fraction for pNN50)"""
    stress_rmssd: float = 15.0
    stress_sdnn: float = 20.0
    mild_stress_rmssd: float = 25.0
    relaxed_rmssd: float = 60.0
    relaxed_pnn50: float = 0.30
    happy_rmssd: float = 45.0
    happy_pnn50: float = 0.20
    focused_sdnn_min: float = 30.0
    focused_sdnn_max: float = 50.0
    focused_pnn50_max: float = 0.10


DEFAULT_POLICY = ClassifierPolicy()


def classify(sdnn: Optional[float], rmssd: Optional[float], pnn50: Optional[float],
             policy: ClassifierPolicy = DEFAULT_POLICY) -> EmotionalState:
    """
    Map HRV features to a mental state

    Rules are checked in order; the first match wins. Missing or
    non-finite features mean there is nothing to classify yet.
    """
    features = (sdnn, rmssd, pnn50)
    if any(v is None or not math.isfinite(v) for v in features):
        return EmotionalState.NO_DATA

    if rmssd < policy.stress_rmssd and sdnn < policy.stress_sdnn:
        return EmotionalState.STRESSED
    if rmssd < policy.mild_stress_rmssd:
        return EmotionalState.MILD_STRESS
    if rmssd >= policy.relaxed_rmssd and pnn50 >= policy.relaxed_pnn50:
        return EmotionalState.RELAXED
    if rmssd >= policy.happy_rmssd and pnn50 >= policy.happy_pnn50:
        return EmotionalState.HAPPY
    if policy.focused_sdnn_min <= sdnn <= policy.focused_sdnn_max and pnn50 < policy.focused_pnn50_max:
        return EmotionalState.FOCUSED
    return EmotionalState.NEUTRAL


def load_policy(profile_path: Optional[str]) -> ClassifierPolicy:
    """
    Load classifier thresholds from a user profile

    The profile is a JSON object whose "classifier" key overrides any of the
    ClassifierPolicy fields. Unknown keys are ignored; a missing or unreadable
    profile yields the default policy.
    """
    if not profile_path or not os.path.exists(profile_path):
        return DEFAULT_POLICY

    try:
        with open(profile_path, 'r') as f:
            profile = json.load(f)
        overrides = profile.get("classifier", {})
        known = {f.name for f in fields(ClassifierPolicy)}
        policy = replace(DEFAULT_POLICY, **{
            key: float(value) for key, value in overrides.items() if key in known
        })
        logging.info(f"Loaded profile: {profile_path}")
        return policy
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logging.error(f"Failed to load profile: {e}")
        return DEFAULT_POLICY
