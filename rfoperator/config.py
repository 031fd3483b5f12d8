"""Operator configuration and command-line flags."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


@dataclass
class Config:
    """Configuration of the redis failover operator."""

    listen_address: str = ""
    metrics_path: str = ""


def _default_kubeconfig() -> str:
    return str(Path.home() / ".kube" / "config")


@dataclass
class CMDFlags:
    """Flags accepted by the operator command."""

    kubeconfig: str = field(default_factory=_default_kubeconfig)
    development: bool = False
    debug: bool = False
    listen_addr: str = ":9710"
    metrics_path: str = "/metrics"

    def to_operator_config(self) -> Config:
        return Config(listen_address=self.listen_addr, metrics_path=self.metrics_path)


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {text!r}")


def _parser() -> argparse.ArgumentParser:
    defaults = CMDFlags()
    parser = argparse.ArgumentParser(prog="redis-operator")
    parser.add_argument(
        "-kubeconfig", "--kubeconfig",
        dest="kubeconfig",
        default=defaults.kubeconfig,
        help="kubernetes configuration path, only used when development mode enabled",
    )
    parser.add_argument(
        "-development", "--development",
        dest="development",
        nargs="?", const=True, default=False, type=_parse_bool,
        help="development flag will allow to run the operator outside a kubernetes cluster",
    )
    parser.add_argument(
        "-debug", "--debug",
        dest="debug",
        nargs="?", const=True, default=False, type=_parse_bool,
        help="enable debug mode",
    )
    parser.add_argument(
        "-listen-address", "--listen-address",
        dest="listen_addr",
        default=defaults.listen_addr,
        help="Address to listen on for metrics.",
    )
    parser.add_argument(
        "-metrics-path", "--metrics-path",
        dest="metrics_path",
        default=defaults.metrics_path,
        help="Path to serve the metrics.",
    )
    return parser


def parse_flags(argv: Optional[Sequence[str]] = None) -> CMDFlags:
    """Parse command-line flags; exits with status 2 on bad input."""
    args = _parser().parse_args(sys.argv[1:] if argv is None else list(argv))
    return CMDFlags(
        kubeconfig=args.kubeconfig,
        development=args.development,
        debug=args.debug,
        listen_addr=args.listen_addr,
        metrics_path=args.metrics_path,
    )