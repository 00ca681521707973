"""
Biosignal acquisition sources

This module provides push-style device streams that deliver one RawSample per
callback: BrainFlow boards, LSL streams and a synthetic generator for testing
without hardware.
"""

import logging
import threading
import time
from typing import Callable, List, Optional
import numpy as np

from ..core.config import SERIAL_PORT, FS_EXPECTED, CHANNELS
from ..core.data_types import RawSample

# Optional imports with fallbacks
try:
    from brainflow.board_shim import BoardShim, BrainFlowInputParams, BoardIds
    BRAINFLOW_AVAILABLE = True
except ImportError:
    BRAINFLOW_AVAILABLE = False
    logging.debug("BrainFlow not available - use LSL or fake mode instead")

try:
    import pylsl
    LSL_AVAILABLE = True
except ImportError:
    LSL_AVAILABLE = False
    logging.debug("pylsl not available - BrainFlow and fake modes only")

SampleCallback = Callable[[RawSample], None]


class DeviceStream:
    """
    Base class for push-style sample sources

    Subclasses open the device in `_open`, then produce samples on a
    background thread through `_push` until `disconnect` is called.
    """

    poll_interval = 0.02
    counter_modulus: Optional[int] = None

    def __init__(self, callback: Optional[SampleCallback] = None, fs: float = FS_EXPECTED):
        self.callback = callback
        self.fs = fs
        self.is_open = False
        self.is_connected = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def set_callback(self, callback: SampleCallback):
        self.callback = callback

    def connect(self) -> bool:
        """
        Open the device and start streaming samples to the callback

        Returns:
            bool: True if connection successful, False otherwise
        """
        return self.open() and self.start()

    def open(self) -> bool:
        """
        Open the device without streaming yet

        `fs` holds the rate the device actually streams at afterwards.
        """
        if self.is_open:
            return True
        try:
            self.is_open = bool(self._open())
        except Exception as e:
            logging.error(f"Failed to connect to {type(self).__name__}: {e}")
            self.is_open = False
        return self.is_open

    def start(self) -> bool:
        """Start delivering samples from an opened device"""
        if not self.is_open:
            return False
        if self.is_connected:
            return True
        self._stop_event.clear()
        self.is_connected = True
        self._thread = threading.Thread(target=self._stream_loop, name=type(self).__name__,
                                        daemon=True)
        self._thread.start()
        return True

    def disconnect(self):
        """Stop streaming and release the device"""
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
        self._thread = None
        try:
            self._close()
        except Exception as e:
            logging.error(f"Disconnect error: {e}")
        finally:
            self.is_open = False
            self.is_connected = False

    def _stream_loop(self):
        while not self._stop_event.is_set():
            try:
                if not self._poll():
                    break
            except Exception as e:
                logging.error(f"{type(self).__name__} read failed: {e}")
                break
            self._stop_event.wait(self.poll_interval)
        self.is_connected = False

    def _push(self, sample: RawSample):
        if self.callback is not None:
            self.callback(sample)

    def _open(self) -> bool:
        raise NotImplementedError

    def _poll(self) -> bool:
        """Deliver any pending samples; return False to end the stream"""
        raise NotImplementedError

    def _close(self):
        pass


class BrainFlowSource(DeviceStream):
    """
    BrainFlow board as a sample stream

    The first two EEG channels and the first ECG channel reported by the
    board description are used; the board's package counter becomes the
    sequence counter.
    """

    counter_modulus = 256

    def __init__(self, callback: Optional[SampleCallback] = None, serial_port: str = SERIAL_PORT,
                 board_id: Optional[int] = None):
        super().__init__(callback)
        self.serial_port = serial_port
        self.board_id = board_id
        self.board = None

    def _open(self) -> bool:
        if not BRAINFLOW_AVAILABLE:
            logging.error("BrainFlow not available. Install with: pip install brainflow")
            return False

        try:
            params = BrainFlowInputParams()
            params.serial_port = self.serial_port
            board_id = self.board_id if self.board_id is not None else BoardIds.CYTON_BOARD
            self.board = BoardShim(board_id, params)

            eeg_channels = BoardShim.get_eeg_channels(board_id)
            ecg_channels = BoardShim.get_ecg_channels(board_id)
            self.eeg_channels = eeg_channels[:2]
            # Boards without a dedicated ECG row carry it on an EEG input
            self.ecg_channel = ecg_channels[0] if ecg_channels else eeg_channels[CHANNELS["ECG"]]
            self.counter_channel = BoardShim.get_package_num_channel(board_id)
            self.fs = BoardShim.get_sampling_rate(board_id)

            logging.info(f"BrainFlow EEG channels: {self.eeg_channels}, ECG channel: {self.ecg_channel}")
            logging.info(f"Sampling rate: {self.fs} Hz")

            self.board.prepare_session()
            self.board.start_stream()
            logging.info(f"Connected to BrainFlow board on {self.serial_port}")
            return True

        except Exception as e:
            logging.error(f"BrainFlow connection failed: {e}")
            logging.error("Hint: Check the serial port, ensure board is on, and no other software is using it")
            return False

    def _poll(self) -> bool:
        data = self.board.get_board_data()
        for i in range(data.shape[1]):
            self._push(RawSample(
                sequence_counter=int(data[self.counter_channel, i]),
                eeg0=float(data[self.eeg_channels[0], i]),
                eeg1=float(data[self.eeg_channels[1], i]),
                ecg=float(data[self.ecg_channel, i]),
            ))
        return True

    def _close(self):
        if self.board is not None:
            self.board.stop_stream()
            self.board.release_session()
            self.board = None
            logging.info("BrainFlow disconnected")


class LSLSource(DeviceStream):
    """
    LSL stream as a sample stream

    LSL carries no packet counter, so samples are numbered on arrival and
    gaps cannot be observed.
    """

    def __init__(self, callback: Optional[SampleCallback] = None, stream_name: str = "ExG"):
        super().__init__(callback)
        self.stream_name = stream_name
        self.inlet = None
        self.counter = 0

    def _open(self) -> bool:
        if not LSL_AVAILABLE:
            logging.error("pylsl not available. Install with: pip install pylsl")
            return False

        try:
            logging.info(f"Looking for LSL stream: {self.stream_name}")
            streams = pylsl.resolve_byprop('name', self.stream_name, timeout=5.0)
            if not streams:
                streams = pylsl.resolve_byprop('type', 'EEG', timeout=5.0)
            if not streams:
                logging.error("No LSL streams found")
                return False

            stream_info = streams[0]
            if stream_info.channel_count() < len(CHANNELS):
                logging.error(f"LSL stream has {stream_info.channel_count()} channels, need {len(CHANNELS)}")
                return False
            self.inlet = pylsl.StreamInlet(stream_info)
            self.fs = stream_info.nominal_srate()
            self.counter = 0

            logging.info(f"Connected to LSL stream: {stream_info.name()}")
            logging.info(f"Channels: {stream_info.channel_count()}, Sample rate: {self.fs} Hz")
            return True

        except Exception as e:
            logging.error(f"LSL connection failed: {e}")
            return False

    def _poll(self) -> bool:
        chunk, _ = self.inlet.pull_chunk(timeout=0.0)
        for values in chunk:
            self._push(RawSample(
                sequence_counter=self.counter,
                eeg0=float(values[CHANNELS["EEG0"]]),
                eeg1=float(values[CHANNELS["EEG1"]]),
                ecg=float(values[CHANNELS["ECG"]]),
            ))
            self.counter += 1
        return True

    def _close(self):
        if self.inlet is not None:
            self.inlet.close_stream()
            self.inlet = None
            logging.info("LSL disconnected")


class FakeBiosignalSource(DeviceStream):
    """
    Generate synthetic EEG and ECG for testing without hardware

    EEG channel 0 carries a 10 Hz alpha rhythm, channel 1 a mix of alpha and
    20 Hz beta; the ECG is a train of Gaussian QRS complexes with T waves at
    the configured heart rate and small beat-to-beat jitter. Output is
    deterministic for a given seed.
    """

    def __init__(self, callback: Optional[SampleCallback] = None, fs: float = FS_EXPECTED,
                 heart_rate: float = 72.0, rr_jitter: float = 0.03, drop_rate: float = 0.0,
                 seed: int = 0, realtime: bool = True, max_samples: Optional[int] = None):
        super().__init__(callback, fs)
        self.heart_rate = heart_rate
        self.rr_jitter = rr_jitter
        self.drop_rate = drop_rate
        self.seed = seed
        self.realtime = realtime
        self.max_samples = max_samples
        self.rng = np.random.default_rng(seed)
        self.index = 0
        self.beat_times: List[float] = [0.3]
        self._started_at = 0.0

    def generate(self, n_samples: int) -> List[RawSample]:
        """
        Produce the next `n_samples` samples

        Dropped samples (drop_rate) consume a counter value but are not
        returned, which shows up downstream as a sequence gap.
        """
        if n_samples <= 0:
            return []
        idx = np.arange(self.index, self.index + n_samples)
        t = idx / self.fs
        self.index += n_samples

        eeg0 = 20 * np.sin(2 * np.pi * 10 * t) + self.rng.normal(0, 5, n_samples)
        eeg1 = (12 * np.sin(2 * np.pi * 10 * t + 0.5) + 10 * np.sin(2 * np.pi * 20 * t)
                + self.rng.normal(0, 5, n_samples))
        ecg = self._ecg(t) + self.rng.normal(0, 0.02, n_samples)
        keep = self.rng.random(n_samples) >= self.drop_rate

        return [RawSample(int(i), float(a), float(b), float(c))
                for i, a, b, c, k in zip(idx, eeg0, eeg1, ecg, keep) if k]

    def _ecg(self, t: np.ndarray) -> np.ndarray:
        rr = 60.0 / self.heart_rate
        while self.beat_times[-1] < t[-1] + 1.0:
            self.beat_times.append(self.beat_times[-1] + rr * (1 + self.rr_jitter * self.rng.standard_normal()))
        # Beats far behind the generation cursor no longer contribute
        while len(self.beat_times) > 1 and self.beat_times[1] < t[0] - 1.0:
            self.beat_times.pop(0)

        signal = np.zeros_like(t)
        for beat in self.beat_times:
            dt = t - beat
            signal += 1.0 * np.exp(-0.5 * (dt / 0.012) ** 2)           # QRS
            signal += 0.25 * np.exp(-0.5 * ((dt - 0.25) / 0.04) ** 2)  # T wave
        return signal

    def _open(self) -> bool:
        self.rng = np.random.default_rng(self.seed)
        self.index = 0
        self.beat_times = [0.3]
        self._started_at = time.time()
        logging.info(f"Synthetic source started ({self.fs} Hz, {self.heart_rate} bpm)")
        return True

    def _poll(self) -> bool:
        if self.realtime:
            due = int((time.time() - self._started_at) * self.fs) - self.index
        else:
            due = int(self.fs * 0.1)
        if self.max_samples is not None:
            due = min(due, self.max_samples - self.index)
            if due <= 0:
                return False
        if due > 0:
            for sample in self.generate(due):
                self._push(sample)
        return True
