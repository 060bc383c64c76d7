# torx_adapter/app/runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

import yaml

from torx_adapter.app.config import AdapterConfig, resolve_timeout_ms
from torx_adapter.core.errors import CodecConfigError, GatewayStartError, TransportConfigError
from torx_adapter.model import CodecLoader, LabelCodec
from torx_adapter.protocol.core.parser import LineSource
from torx_adapter.protocol.engine import LineSink, ProtocolEngine
from torx_adapter.runtime.gateway import CodecGateway
from torx_adapter.transport.base import Transport
from torx_adapter.transport.errors import TransportError
from torx_adapter.transport.registry import TransportDriverRegistry


@dataclass(frozen=True)
class AdapterRun:
    engine: ProtocolEngine
    gateway: CodecGateway
    codec: LabelCodec
    codec_hash: str
    timeout_ms: int


def load_codec(path: str | Path) -> Tuple[LabelCodec, str]:
    loader = CodecLoader(path)
    try:
        codec = loader.load()
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        raise CodecConfigError(
            "Failed to load label codec.",
            hint=str(e),
            details={"codec_path": str(path)},
        ) from None
    except Exception as e:
        raise CodecConfigError(
            "Unexpected error while loading label codec.",
            hint=str(e),
            details={"codec_path": str(path)},
        ) from None
    return codec, loader.file_hash or ""


def create_transport(cfg: AdapterConfig, drivers: Optional[TransportDriverRegistry] = None) -> Transport:
    """Construct (not open) the SUT transport named by cfg.driver."""
    drivers = drivers or TransportDriverRegistry.default()
    try:
        return drivers.create(cfg.driver, **dict(cfg.transport_params))
    except (TransportError, TypeError, ValueError) as e:
        raise TransportConfigError(
            f"Failed to construct transport (driver='{cfg.driver}').",
            hint=str(e),
            details={
                "driver": cfg.driver,
                "known_drivers": drivers.drivers(),
                "params": dict(cfg.transport_params),
            },
        ) from None


def build_run(
    cfg: AdapterConfig,
    *,
    input_stream: LineSource,
    output_stream: LineSink,
    drivers: Optional[TransportDriverRegistry] = None,
    environ: Optional[Mapping[str, str]] = None,
    owns_streams: bool = False,
) -> AdapterRun:
    log = logging.getLogger(__name__)

    codec, codec_hash = load_codec(cfg.codec_path)
    log.info("CODEC_LOADED path=%s sha256=%s %r", cfg.codec_path, codec_hash, codec)

    transport = create_transport(cfg, drivers)
    log.info("SUT_TRANSPORT driver=%s endpoint=%s", transport.driver, transport.describe())
    gateway = CodecGateway(transport, codec)

    timeout_ms = resolve_timeout_ms(cfg.timeout_ms, environ)
    engine = ProtocolEngine(
        gateway,
        timeout_s=timeout_ms / 1000.0,
        input_stream=input_stream,
        output_stream=output_stream,
        ready=gateway.ready,
        handshake_wait_s=cfg.handshake_wait_s,
        owns_streams=owns_streams,
    )

    return AdapterRun(
        engine=engine,
        gateway=gateway,
        codec=codec,
        codec_hash=codec_hash,
        timeout_ms=timeout_ms,
    )


def run_adapter(
    cfg: AdapterConfig,
    *,
    input_stream: LineSource,
    output_stream: LineSink,
    drivers: Optional[TransportDriverRegistry] = None,
    environ: Optional[Mapping[str, str]] = None,
    owns_streams: bool = False,
) -> AdapterRun:
    """
    Serve one test run: engine first (so the handshake can be received while the
    SUT starts), then the gateway. Returns once the engine has stopped.
    """
    run = build_run(
        cfg,
        input_stream=input_stream,
        output_stream=output_stream,
        drivers=drivers,
        environ=environ,
        owns_streams=owns_streams,
    )

    run.engine.start()
    try:
        run.gateway.start(run.engine)
    except GatewayStartError:
        run.engine.notify_end_of_test()
        run.engine.join()
        raise

    try:
        run.engine.join()
    except KeyboardInterrupt:
        run.engine.notify_end_of_test()
        run.engine.join(timeout=cfg.handshake_wait_s)
        raise
    return run
