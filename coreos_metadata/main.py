from __future__ import annotations

import argparse
import logging
from typing import Optional

from . import __version__
from .attributes import write_attributes
from .config import Config, resolve_config
from .errors import AttributesError, ConfigError, FetchError, SshKeysError
from .logging_utils import configure_logging
from .providers import PROVIDER_NAMES, fetch_metadata
from .ssh_keys import write_ssh_keys

logger = logging.getLogger(__name__)

VERSION_STRING = f"coreos-metadata {__version__}"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def run(config: Config) -> None:
    """Fetch metadata and write whatever outputs config asks for."""

    metadata = fetch_metadata(config.provider)
    write_attributes(config.attributes, metadata)
    write_ssh_keys(config.ssh_keys, metadata)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="coreos-metadata")
    p.add_argument(
        "--cmdline",
        action="store_true",
        default=None,
        help="Read the cloud provider from the kernel cmdline",
    )
    p.add_argument(
        "--provider",
        default=None,
        help=f"The name of the cloud provider ({', '.join(sorted(PROVIDER_NAMES))})",
    )
    p.add_argument("--attributes", default=None, help="The file into which the metadata attributes are written")
    p.add_argument("--ssh-keys", dest="ssh_keys", default=None, help="Update SSH keys for the given user")
    p.add_argument("--config", default=None, help="YAML file with defaults for the options above")
    p.add_argument("--log", default=None, help="Also log to this file")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--version", action="store_true", help="Print the version and exit")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(VERSION_STRING)
        return EXIT_OK

    try:
        configure_logging(log_path=args.log, level=logging.DEBUG if args.debug else logging.INFO)
    except OSError as e:
        logger.error("could not open log file: %s", e)
        return EXIT_USAGE

    try:
        config = resolve_config(args)
    except ConfigError as e:
        logger.error("%s", e)
        return EXIT_USAGE

    try:
        run(config)
    except FetchError as e:
        logger.error("failed to fetch metadata: %s", e)
        return EXIT_FAILURE
    except AttributesError as e:
        logger.error("failed to write metadata attributes: %s", e)
        return EXIT_FAILURE
    except SshKeysError as e:
        logger.error("failed to write metadata keys: %s", e)
        return EXIT_FAILURE

    return EXIT_OK
