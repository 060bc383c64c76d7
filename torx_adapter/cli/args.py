# torx_adapter/cli/args.py
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Tuple

from torx_adapter.app.config import AdapterConfig

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    """
    Adapter options first, then the SUT transport as a subcommand:

        torx-adapter --codec fwgc.yml process -- ./fwgc
        torx-adapter --codec sut.yml uart --port /dev/ttyUSB0
    """
    parser = argparse.ArgumentParser(
        prog="torx-adapter",
        description="TorX adapter: serves the test tool on stdin/stdout and drives the SUT.",
    )
    parser.add_argument("--codec", required=True, type=Path, help="YAML label codec for the SUT.")
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=1000,
        help="Quiescence timeout in ms (TORXTIMEOUT/TORXTIMEUNIT take precedence).",
    )
    parser.add_argument(
        "--handshake-wait-s",
        type=float,
        default=10.0,
        help="Max time the handshake answer waits for the SUT to come up.",
    )
    parser.add_argument("--log-level", default="INFO", type=str.upper, choices=LOG_LEVELS)
    parser.add_argument("--log-file", type=Path, default=None, help="Also write diagnostics to this file.")

    sub = parser.add_subparsers(dest="driver", required=True)

    p_proc = sub.add_parser("process", help="Run the SUT as a child process.")
    p_proc.add_argument("--cwd", default=None, help="Working directory of the SUT.")
    p_proc.add_argument("argv", nargs=argparse.REMAINDER, help="SUT command line (after --).")

    p_uart = sub.add_parser("uart", help="Reach the SUT over a serial line.")
    p_uart.add_argument("--port", required=True)
    p_uart.add_argument("--baudrate", type=int, default=115200)
    p_uart.add_argument("--read-timeout", type=float, default=0.05)

    return parser


def parse_args(argv: Optional[list[str]] = None) -> Tuple[argparse.Namespace, AdapterConfig]:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.driver == "process":
        command = list(args.argv)
        if command and command[0] == "--":
            command = command[1:]
        if not command:
            parser.error("process: missing SUT command line")
        params: dict = {"argv": command}
        if args.cwd:
            params["cwd"] = args.cwd
    else:
        params = {
            "port": args.port,
            "baudrate": args.baudrate,
            "timeout": args.read_timeout,
        }

    cfg = AdapterConfig(
        codec_path=str(args.codec),
        driver=args.driver,
        transport_params=params,
        timeout_ms=args.timeout_ms,
        handshake_wait_s=args.handshake_wait_s,
    )
    return args, cfg
