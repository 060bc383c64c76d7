# torx_adapter/transport/process.py
from __future__ import annotations

import shlex
import subprocess
from typing import IO, Mapping, Optional, Sequence

from .base import Transport
from .errors import TransportEOFError, TransportIOError, TransportOpenError


class ProcessTransport(Transport):
    """
    SUT run as a child process; stimuli go to its stdin, observations come from its stdout.

    Pipes are unbuffered: read(n) blocks until at least one byte is available and
    raises TransportEOFError once the child closed stdout. The child's stderr is
    exposed for diagnostics.
    """

    driver = "process"

    def __init__(
        self,
        argv: Sequence[str],
        cwd: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        terminate_grace_s: float = 1.0,
    ):
        if not argv:
            raise ValueError("ProcessTransport needs a command to run")
        self.argv = [str(a) for a in argv]
        self.cwd = cwd
        self.env = dict(env) if env is not None else None
        self.terminate_grace_s = float(terminate_grace_s)
        self.proc: Optional[subprocess.Popen] = None

    def describe(self) -> str:
        return shlex.join(self.argv)

    def open(self) -> None:
        try:
            self.proc = subprocess.Popen(
                self.argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
                cwd=self.cwd,
                env=self.env,
            )
        except (OSError, ValueError) as e:
            self.proc = None
            raise TransportOpenError(f"Could not start {self.argv[0]}: {e}") from None

    def close(self) -> None:
        proc = self.proc
        if proc is None:
            return
        self.proc = None

        try:
            if proc.stdin is not None:
                proc.stdin.close()
        except OSError:
            pass

        if proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=self.terminate_grace_s)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()

        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()

    def is_open(self) -> bool:
        return self.proc is not None

    @property
    def stderr(self) -> Optional[IO[bytes]]:
        return self.proc.stderr if self.proc is not None else None

    @property
    def returncode(self) -> Optional[int]:
        return self.proc.poll() if self.proc is not None else None

    def read(self, n: int) -> bytes:
        proc = self.proc
        if proc is None or proc.stdout is None:
            raise TransportIOError("read while transport not open")

        try:
            data = proc.stdout.read(n)
        except (OSError, ValueError) as e:
            raise TransportIOError(f"SUT read failed: {e}") from None

        if not data:
            raise TransportEOFError("SUT closed its output")
        return data

    def write(self, data: bytes) -> int:
        proc = self.proc
        if proc is None or proc.stdin is None:
            raise TransportIOError("write while transport not open")

        try:
            view = memoryview(data)
            total = 0
            while total < len(view):
                total += proc.stdin.write(view[total:]) or 0
            return total
        except (OSError, ValueError) as e:
            raise TransportIOError(f"SUT write failed: {e}") from None

    def flush(self) -> None:
        proc = self.proc
        if proc is None or proc.stdin is None:
            raise TransportIOError("flush while transport not open")

        try:
            proc.stdin.flush()
        except (OSError, ValueError) as e:
            raise TransportIOError(f"SUT flush failed: {e}") from None
