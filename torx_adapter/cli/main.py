# torx_adapter/cli/main.py
from __future__ import annotations

import logging
import sys
from typing import Optional

from torx_adapter.core.errors import AdapterError

from torx_adapter.cli.args import parse_args
from torx_adapter.cli.commands import cmd_run, configure_logging


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args, cfg = parse_args(argv)
        configure_logging(args.log_level, args.log_file)
        return cmd_run(cfg)
    except AdapterError as e:
        logging.getLogger(__name__).debug("ADAPTER_FAILED code=%s details=%s", e.code, e.details)
        for line in e.render():
            print(line, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
