import logging
import os
import sys
from pathlib import Path

import fncli

from .core.errors import TaskhubError

_LOG_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO}


def configure_logging() -> None:
    level = _LOG_LEVELS.get(os.environ.get("TASKHUB_LOG", "").lower(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main():
    configure_logging()
    fncli.autodiscover(Path(__file__).parent, "taskhub")

    argv = ["taskhub", *sys.argv[1:]]
    try:
        code = fncli.dispatch(argv)
    except TaskhubError as e:
        sys.stderr.write(f"{e}\n")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
