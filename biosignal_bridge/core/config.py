"""
Configuration constants for Biosignal Bridge

This module contains all configuration parameters that users may need to customize
for their specific hardware setup and processing requirements.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

# ============================================================================
# HARDWARE CONFIGURATION - User should edit these values for their setup
# ============================================================================

# Hardware Configuration
SERIAL_PORT = "COM3"              # Windows: COMx, Linux: /dev/ttyUSBx
FS_EXPECTED = 500                 # Device sampling rate (Hz)
COUNTER_MODULUS = None            # Set to 256 for devices with an 8-bit packet counter

# Channel Mapping - positions of the three signals in a device sample
CHANNELS = {
    "EEG0": 0,
    "EEG1": 1,
    "ECG": 2,
}

# ============================================================================
# PROCESSING CONFIGURATION
# ============================================================================

# Band-power analysis
WINDOW_SIZE = 256                 # Samples per EEG analysis window
BAND_STRIDE = 10                  # Run a spectral tick every N accepted samples
BAND_SMOOTHING = 0.7              # Weight on previous tick (higher = calmer, laggier)

# Frequency Bands (Hz), half-open [low, high)
FREQ_BANDS: Dict[str, Tuple[float, float]] = {
    "delta": (0.5, 4.0),
    "theta": (4.0, 8.0),
    "alpha": (8.0, 13.0),
    "beta": (13.0, 30.0),
    "gamma": (30.0, 100.0),
}

# ============================================================================
# CARDIAC CONFIGURATION
# ============================================================================

ECG_BUFFER_SIZE = 2500            # 5 s at 500 Hz
PEAK_STRIDE = 500                 # Run peak detection once per second
QRS_BAND = (5.0, 15.0)            # Band-pass for R-peak enhancement (Hz)
MIN_RR_MS = 250.0                 # Refractory distance between beats (240 bpm ceiling)
PEAK_PROMINENCE_FRAC = 0.35       # Fraction of the 99th-percentile amplitude
IBI_HISTORY = 60                  # IBIs retained for HRV statistics

BPM_WINDOW = 5                    # Instantaneous readings averaged for display
BPM_MAX_STEP = 2.0                # Max change of displayed BPM per update

# ============================================================================
# STATE CONFIGURATION
# ============================================================================

WARMUP_MS = 5000                  # Output pinned to no_data after connection
STATE_WINDOW_MS = 5000            # Trailing voting window
STATE_COMMIT_MS = 5000            # Minimum time between committed states

# ============================================================================
# RUNTIME / COMMUNICATION CONFIGURATION
# ============================================================================

INBOX_CAPACITY = 5000             # Messages per actor inbox before drop-oldest

UDP_HOST = "127.0.0.1"            # Rendering client UDP host
UDP_PORT = 5005                   # Rendering client UDP port

# File Paths
PROFILE_DIR = "profiles"          # User classifier profiles directory
SESSION_DIR = "sessions"          # Session exports directory


@dataclass
class PipelineConfig:
    """
    Runtime configuration for one processing pipeline

    Defaults come from the module constants above so the CLI can override
    individual fields without touching the module globals.
    """

    fs: float = FS_EXPECTED
    window_size: int = WINDOW_SIZE
    band_stride: int = BAND_STRIDE
    band_smoothing: float = BAND_SMOOTHING
    freq_bands: Dict[str, Tuple[float, float]] = field(default_factory=lambda: dict(FREQ_BANDS))

    ecg_buffer_size: int = ECG_BUFFER_SIZE
    peak_stride: int = PEAK_STRIDE
    qrs_band: Tuple[float, float] = QRS_BAND
    min_rr_ms: float = MIN_RR_MS
    peak_prominence_frac: float = PEAK_PROMINENCE_FRAC
    ibi_history: int = IBI_HISTORY
    bpm_window: int = BPM_WINDOW
    bpm_max_step: float = BPM_MAX_STEP

    warmup_ms: float = WARMUP_MS
    state_window_ms: float = STATE_WINDOW_MS
    state_commit_ms: float = STATE_COMMIT_MS

    counter_modulus: Optional[int] = COUNTER_MODULUS
    inbox_capacity: int = INBOX_CAPACITY

    def validate(self) -> "PipelineConfig":
        """Raise ValueError for settings the pipeline cannot run with"""
        if self.fs <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.fs}")
        for name in ("window_size", "band_stride", "ecg_buffer_size", "peak_stride",
                     "ibi_history", "bpm_window", "inbox_capacity"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if not 0.0 <= self.band_smoothing < 1.0:
            raise ValueError(f"band_smoothing must be in [0, 1), got {self.band_smoothing}")
        if self.bpm_max_step <= 0:
            raise ValueError(f"bpm_max_step must be positive, got {self.bpm_max_step}")
        low, high = self.qrs_band
        if not 0 < low < high < self.fs / 2:
            raise ValueError(f"QRS band {self.qrs_band} must lie below Nyquist ({self.fs / 2} Hz)")
        if self.counter_modulus is not None and self.counter_modulus < 2:
            raise ValueError(f"counter_modulus must be >= 2, got {self.counter_modulus}")
        return self
