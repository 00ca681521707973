"""
Session recording

While a session is active, every band-power tick's aggregate is appended to
an in-memory log. The log is append-only and can be summarized or exported
on demand.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..communication.listeners import PipelineListener
from ..core.data_types import BandPowerReport


@dataclass(frozen=True)
class SessionEntry:
    """Channel-mean aggregate of one band-power tick"""
    timestamp_ms: float
    alpha: float
    beta: float
    theta: float
    delta: float
    symmetry: float
    score: float


class SessionRecorder(PipelineListener):
    """Append-only log of band-power aggregates for the active session"""

    def __init__(self):
        self._entries: List[SessionEntry] = []
        self.active = False

    def start(self):
        self._entries = []
        self.active = True
        logging.info("Session recording started")

    def stop(self):
        if self.active:
            logging.info(f"Session recording stopped ({len(self._entries)} ticks)")
        self.active = False

    @property
    def entries(self) -> List[SessionEntry]:
        return list(self._entries)

    def on_band_power(self, report: BandPowerReport):
        if not self.active:
            return
        channels = report.channels
        self._entries.append(SessionEntry(
            timestamp_ms=report.timestamp_ms,
            alpha=float(np.mean([ch.alpha for ch in channels])),
            beta=float(np.mean([ch.beta for ch in channels])),
            theta=float(np.mean([ch.theta for ch in channels])),
            delta=float(np.mean([ch.delta for ch in channels])),
            symmetry=float(report.symmetry),
            score=float(report.score),
        ))

    def to_dataframe(self) -> pd.DataFrame:
        columns = ["timestamp_ms", "alpha", "beta", "theta", "delta", "symmetry", "score"]
        return pd.DataFrame([asdict(e) for e in self._entries], columns=columns)

    def summary(self) -> Dict[str, Any]:
        """
        Duration and mean values of the recorded session

        Means are None for an empty session.
        """
        df = self.to_dataframe()
        summary: Dict[str, Any] = {"ticks": len(df)}
        if df.empty:
            summary["duration_s"] = 0.0
            for name in ("alpha", "beta", "theta", "delta", "symmetry", "score"):
                summary[f"mean_{name}"] = None
            return summary

        summary["duration_s"] = float(df["timestamp_ms"].iloc[-1] - df["timestamp_ms"].iloc[0]) / 1000.0
        for name in ("alpha", "beta", "theta", "delta", "symmetry", "score"):
            summary[f"mean_{name}"] = float(df[name].mean())
        return summary

    def export_csv(self, path: str) -> Optional[str]:
        """Write the session log as CSV; returns the path or None on failure"""
        try:
            _ensure_parent(path)
            self.to_dataframe().to_csv(path, index=False)
            logging.info(f"Session exported: {path}")
            return path
        except OSError as e:
            logging.error(f"Failed to export session: {e}")
            return None

    def export_json(self, path: str) -> Optional[str]:
        """Write summary and entries as one JSON document"""
        try:
            _ensure_parent(path)
            with open(path, 'w') as f:
                json.dump({"summary": self.summary(),
                           "entries": [asdict(e) for e in self._entries]}, f, indent=2)
            logging.info(f"Session exported: {path}")
            return path
        except OSError as e:
            logging.error(f"Failed to export session: {e}")
            return None


def _ensure_parent(path: str):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
