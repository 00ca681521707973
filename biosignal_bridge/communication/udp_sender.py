"""
UDP rendering client interface

This module forwards pipeline notifications to a rendering client over UDP,
one JSON message per notification.
"""

import json
import logging
import socket
import time
from dataclasses import asdict
from typing import Any, Dict

from ..core.config import UDP_HOST, UDP_PORT
from ..core.data_types import (
    BandPowerReport, BPMState, ChannelId, EmotionalState, HRVState, SequenceGap,
)
from .listeners import PipelineListener


class UdpSender(PipelineListener):
    """
    Send pipeline updates to a rendering client via UDP JSON messages

    Raw samples are high-rate (three per device sample) and only forwarded
    when `send_raw` is enabled.
    """

    def __init__(self, host: str = UDP_HOST, port: int = UDP_PORT, send_raw: bool = False):
        self.host = host
        self.port = port
        self.send_raw = send_raw
        self.socket = None
        self._setup_socket()

    def _setup_socket(self):
        """Setup UDP socket for communication"""
        try:
            self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            logging.info(f"UDP sender initialized: {self.host}:{self.port}")
        except OSError as e:
            logging.error(f"Failed to setup UDP socket: {e}")

    def send(self, message: Dict[str, Any]) -> bool:
        """
        Send one JSON message

        Returns:
            bool: True if sent successfully
        """
        if self.socket is None:
            return False

        try:
            message.setdefault("t", time.time())
            json_str = json.dumps(message)
            self.socket.sendto(json_str.encode('utf-8'), (self.host, self.port))
            return True
        except (OSError, TypeError, ValueError) as e:
            logging.error(f"Failed to send UDP message: {e}")
            return False

    def on_raw(self, counter: int, value: float, channel: ChannelId):
        if self.send_raw:
            self.send({"type": "raw", "counter": counter, "channel": channel.value,
                       "value": float(value)})

    def on_band_power(self, report: BandPowerReport):
        self.send({
            "type": "band_power",
            "sample": report.sample_index,
            "channels": [vector.as_dict() for vector in report.channels],
            "symmetry": float(report.symmetry),
            "goal": report.goal.value,
            "score": float(report.score),
        })

    def on_bpm(self, state: BPMState):
        self.send({"type": "bpm", **asdict(state)})

    def on_hrv(self, state: HRVState):
        self.send({"type": "hrv", **asdict(state)})

    def on_state(self, state: EmotionalState):
        self.send({"type": "state", "state": state.value})

    def on_gap(self, gap: SequenceGap):
        self.send({"type": "gap", **asdict(gap)})

    def close(self):
        """Close UDP socket"""
        if self.socket:
            self.socket.close()
            self.socket = None
