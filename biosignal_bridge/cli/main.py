"""
Main CLI entry point for Biosignal Bridge

This module provides the command-line interface and the live and replay
processing loops.
"""

import argparse
import logging
import os
import signal
import sys
import time
from threading import Event
from typing import Iterator, List

import pandas as pd

from ..core.config import (
    SERIAL_PORT, FS_EXPECTED, UDP_HOST, UDP_PORT, PROFILE_DIR, SESSION_DIR, PipelineConfig,
)
from ..core.data_types import Goal, RawSample
from ..acquisition.sources import BrainFlowSource, DeviceStream, FakeBiosignalSource, LSLSource
from ..communication.listeners import ConsoleStatus, PipelineListener
from ..communication.udp_sender import UdpSender
from ..detection.classifier import load_policy
from ..runtime.pipeline import Pipeline
from ..session.recorder import SessionRecorder


def create_source(args) -> DeviceStream:
    """Build the device stream selected on the command line"""
    if args.source == "fake":
        logging.info("Using synthetic biosignal data")
        return FakeBiosignalSource(fs=args.fs, heart_rate=args.heart_rate,
                                   drop_rate=args.drop_rate)
    if args.source == "lsl":
        return LSLSource(stream_name=args.lsl_stream)
    return BrainFlowSource(serial_port=args.serial_port)


def read_replay_csv(path: str) -> Iterator[RawSample]:
    """
    Read a recorded stream with columns counter, eeg0, eeg1, ecg

    Missing values are passed through as NaN so the pipeline rejects them
    exactly as it would live.
    """
    df = pd.read_csv(path)
    missing = {"counter", "eeg0", "eeg1", "ecg"} - set(df.columns)
    if missing:
        raise ValueError(f"Replay file {path} lacks columns: {sorted(missing)}")
    for row in df.itertuples(index=False):
        yield RawSample(int(row.counter), float(row.eeg0), float(row.eeg1), float(row.ecg))


def run_realtime_processing(pipeline: Pipeline, source: DeviceStream, duration: float = 0.0) -> bool:
    """
    Stream samples from the device through the pipeline until stopped

    Stops on SIGINT/SIGTERM, when the device stream ends, or after
    `duration` seconds if given.
    """
    logging.info("Starting real-time processing...")

    # Graceful shutdown handler
    shutdown_event = Event()

    def signal_handler(signum, frame):
        logging.info("Shutdown signal received")
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    source.set_callback(pipeline.on_sample)
    if not source.open():
        logging.error("Failed to connect to device")
        return False
    # Analysis must run at the rate the device streams at, not the requested one
    try:
        pipeline.set_sample_rate(source.fs)
    except ValueError as e:
        logging.error(f"Unusable device sample rate: {e}")
        source.disconnect()
        return False
    pipeline.connect()
    source.start()

    start = time.time()
    stream_ended = False
    try:
        logging.info("Real-time processing started. Press Ctrl+C to stop.")
        while not shutdown_event.is_set():
            if not source.is_connected:
                logging.warning("Device stream ended")
                stream_ended = True
                break
            if duration and time.time() - start >= duration:
                break
            shutdown_event.wait(0.2)
    finally:
        source.disconnect()
        if stream_ended:
            # Everything the device delivered is analyzed before teardown
            pipeline.flush()
        pipeline.disconnect()
        logging.info("Real-time processing stopped")
    return True


def run_replay(pipeline: Pipeline, csv_path: str) -> bool:
    """Push a recorded stream through the pipeline as fast as possible"""
    try:
        samples = list(read_replay_csv(csv_path))
    except (OSError, ValueError) as e:
        logging.error(f"Cannot read replay file: {e}")
        return False

    logging.info(f"Replaying {len(samples)} samples from {csv_path}")
    pipeline.connect()
    try:
        for sample in samples:
            pipeline.on_sample(sample)
        pipeline.flush()
    finally:
        pipeline.disconnect()
    return True


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser"""
    parser = argparse.ArgumentParser(
        description="Biosignal Bridge - Real-time EEG/ECG state processing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with synthetic data
  python -m biosignal_bridge --run --source fake

  # Run from an OpenBCI board, record the session and export it
  python -m biosignal_bridge --run --source brainflow --serial-port /dev/ttyUSB0 --record

  # Replay a recorded stream
  python -m biosignal_bridge --replay data/session.csv --goal meditation
        """
    )

    # Mode selection (mutually exclusive)
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument("--run", action="store_true",
                           help="Run real-time processing")
    mode_group.add_argument("--replay", metavar="CSV",
                           help="Replay a recorded counter,eeg0,eeg1,ecg CSV")

    # Data source options
    parser.add_argument("--source", choices=["fake", "brainflow", "lsl"], default="fake",
                       help="Device stream (default: fake)")
    parser.add_argument("--serial-port", default=SERIAL_PORT,
                       help=f"Serial port for BrainFlow (default: {SERIAL_PORT})")
    parser.add_argument("--lsl-stream", default="ExG",
                       help="LSL stream name (default: ExG)")
    parser.add_argument("--heart-rate", type=float, default=72.0,
                       help="Synthetic heart rate in bpm (default: 72)")
    parser.add_argument("--drop-rate", type=float, default=0.0,
                       help="Synthetic packet loss probability (default: 0)")
    parser.add_argument("--duration", type=float, default=0.0,
                       help="Stop after this many seconds (default: run until Ctrl+C)")

    # Processing parameters
    parser.add_argument("--fs", type=int, default=FS_EXPECTED,
                       help=f"Sampling frequency (default: {FS_EXPECTED})")
    parser.add_argument("--goal", choices=[g.value for g in Goal], default=Goal.ANXIETY.value,
                       help="Session goal for the composite score (default: anxiety)")
    parser.add_argument("--user",
                       help="User ID; loads classifier thresholds from the profile directory")

    # Session options
    parser.add_argument("--record", action="store_true",
                       help="Record band-power aggregates for this session")
    parser.add_argument("--export",
                       help="Export path for the recorded session (.csv or .json)")

    # Communication options
    parser.add_argument("--udp-host", default=UDP_HOST,
                       help=f"Rendering client UDP host (default: {UDP_HOST})")
    parser.add_argument("--udp-port", type=int, default=UDP_PORT,
                       help=f"Rendering client UDP port (default: {UDP_PORT})")
    parser.add_argument("--no-udp", action="store_true",
                       help="Do not forward updates over UDP")

    # Logging
    parser.add_argument("--verbose", "-v", action="store_true",
                       help="Enable verbose logging")

    return parser


def main(argv: List[str] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    print("=" * 60)
    print("Biosignal Bridge - Real-time EEG/ECG Processing")
    print("=" * 60)

    udp_sender = None
    try:
        config = PipelineConfig(fs=args.fs)
        source = None
        if args.run:
            source = create_source(args)
            config.counter_modulus = source.counter_modulus

        policy = load_policy(os.path.join(PROFILE_DIR, f"{args.user}.json") if args.user else None)
        listeners: List[PipelineListener] = [ConsoleStatus()]
        if not args.no_udp:
            udp_sender = UdpSender(args.udp_host, args.udp_port)
            listeners.append(udp_sender)
        recorder = SessionRecorder()
        listeners.append(recorder)
        if args.record or args.export or args.replay:
            recorder.start()

        pipeline = Pipeline(config, listeners, goal=Goal(args.goal), policy=policy)

        if args.run:
            success = run_realtime_processing(pipeline, source, args.duration)
        else:
            success = run_replay(pipeline, args.replay)
        recorder.stop()

        if recorder.entries:
            summary = recorder.summary()
            print("Session summary: " + ", ".join(
                f"{key}={value:.2f}" if isinstance(value, float) else f"{key}={value}"
                for key, value in summary.items()))
            export_path = args.export
            if args.record and not export_path:
                export_path = os.path.join(SESSION_DIR, time.strftime("session_%Y%m%d_%H%M%S.csv"))
            if export_path:
                exported = (recorder.export_json(export_path) if export_path.endswith(".json")
                            else recorder.export_csv(export_path))
                success = success and exported is not None
        return 0 if success else 1

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 0
    except ValueError as e:
        logging.error(f"Invalid configuration: {e}")
        return 1
    finally:
        if udp_sender is not None:
            udp_sender.close()


if __name__ == "__main__":
    sys.exit(main())
