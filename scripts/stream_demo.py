#!/usr/bin/env python3
"""
Stream Demo Script
==================

Standalone script that streams synthetic frames to a controller.

This script:
    1. Connects to a controller at the given host and port
    2. Produces a moving test pattern at a configurable rate
    3. Logs connection and send stats every few seconds
    4. Reports a final summary

Prerequisites:
    - A controller accepting WebSocket connections
    - Install the package: pip install -e .

Usage:
    python scripts/stream_demo.py --host 10.0.0.5 --port 9000 --duration 60
"""

import argparse
import asyncio
import logging
import os
import sys
import time

import numpy as np

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from frame_relay import FrameRelayClient
from frame_relay.config import load_config, setup_logging


logger = logging.getLogger("stream_demo")


def make_test_pattern(tick: int, width: int, height: int) -> np.ndarray:
    """BGR gradient with a moving bar and per-frame noise."""
    x = np.linspace(0, 255, width, dtype=np.float32)
    y = np.linspace(0, 255, height, dtype=np.float32)[:, None]
    frame = np.empty((height, width, 3), dtype=np.uint8)
    frame[..., 0] = (x + tick * 3) % 256
    frame[..., 1] = (y + tick * 5) % 256
    frame[..., 2] = 128

    bar = (tick * 8) % width
    frame[:, bar:bar + 20] = 255

    noise = np.random.default_rng(tick).integers(0, 40, size=frame.shape, dtype=np.uint8)
    return frame - np.minimum(frame, noise)


async def run_demo(
    host: str,
    port: str,
    duration: int,
    fps: float,
    width: int,
    height: int,
    report_interval: int,
) -> dict:
    """
    Stream frames for duration seconds.

    Returns:
        Final client metrics dict
    """
    client = FrameRelayClient()
    client.on_server_json = lambda command: logger.info(f"Server command: {command.action}")
    client.start(host, port, "demo-device", "stream_demo", "demo", "")

    start_time = time.time()
    last_report_time = start_time
    tick = 0

    try:
        while time.time() - start_time < duration:
            client.send_image(make_test_pattern(tick, width, height))
            tick += 1

            if time.time() - last_report_time >= report_interval:
                metrics = client.metrics()
                logger.info("-" * 40)
                logger.info(f"State: {metrics['state']}")
                logger.info(f"  Frames requested: {metrics['scheduler']['requested']}")
                logger.info(f"  Frames sent: {metrics['scheduler']['sent']}")
                logger.info(f"  Frames dropped: {metrics['scheduler']['dropped']}")
                logger.info(f"  Reconnects scheduled: {metrics['connection']['reconnects_scheduled']}")
                last_report_time = time.time()

            await asyncio.sleep(1.0 / fps)
    finally:
        client.close()

    metrics = client.metrics()
    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Frames produced: {tick}")
    logger.info(f"Frames sent: {metrics['scheduler']['sent']}")
    logger.info(f"Frames coalesced: {metrics['scheduler']['coalesced']}")
    logger.info(f"Heartbeats sent: {metrics['connection']['heartbeats_sent']}")
    logger.info("=" * 60)
    return metrics


def main():
    parser = argparse.ArgumentParser(description="Stream synthetic frames to a controller")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Controller host")
    parser.add_argument("--port", type=str, default="8765", help="Controller port")
    parser.add_argument("--duration", type=int, default=60, help="Seconds to stream (default: 60)")
    parser.add_argument("--fps", type=float, default=10.0, help="Frames produced per second")
    parser.add_argument("--width", type=int, default=1280, help="Frame width")
    parser.add_argument("--height", type=int, default=720, help="Frame height")
    parser.add_argument(
        "--report-interval",
        type=int,
        default=5,
        help="Seconds between progress reports (default: 5)",
    )
    args = parser.parse_args()

    setup_logging(load_config())

    try:
        metrics = asyncio.run(run_demo(
            host=args.host,
            port=args.port,
            duration=args.duration,
            fps=args.fps,
            width=args.width,
            height=args.height,
            report_interval=args.report_interval,
        ))
    except KeyboardInterrupt:
        logger.info("Demo interrupted by user")
        sys.exit(130)

    sys.exit(0 if metrics["scheduler"]["sent"] > 0 else 1)


if __name__ == "__main__":
    main()
