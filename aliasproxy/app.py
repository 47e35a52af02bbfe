# Copyright 2024 The Matrix.org Foundation C.I.C.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import argparse
import logging
import sys
from typing import List, Optional

from twisted.internet.error import CannotListenError
from twisted.internet.interfaces import IReactorCore
from twisted.web.server import Site

from aliasproxy import __version__
from aliasproxy.config import ConfigError, ProxyConfig
from aliasproxy.config.keys import generate_signing_key_line
from aliasproxy.config.logger import setup_logging
from aliasproxy.server import ProxyServer

logger = logging.getLogger("aliasproxy.app")

# Exit status when the listener cannot be bound
EXIT_LISTEN_FAILED = 10


def start(config: ProxyConfig, reactor: IReactorCore) -> ProxyServer:
    """Builds the proxy server and starts listening.

    Raises:
        CannotListenError: if the listen address cannot be bound.
    """
    hs = ProxyServer(config, reactor)
    site = Site(hs.get_resource())
    reactor.listenTCP(
        config.server.bind_port, site, interface=config.server.bind_host
    )
    logger.info("Listening on %s", config.server.listen)
    return hs


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="aliasproxy",
        description="Matrix federation proxy for room alias queries and server keys",
    )
    parser.add_argument(
        "-c",
        "--config-path",
        default="config.yaml",
        help="Path to the YAML config file (default: %(default)s)",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=["run", "genkey", "generate-config"],
        help="genkey prints a new signing key, generate-config prints a sample config",
    )
    parser.add_argument("--version", action="version", version=__version__)
    args = parser.parse_args(argv)

    if args.command == "genkey":
        print(generate_signing_key_line())
        return
    if args.command == "generate-config":
        print(ProxyConfig().generate_config())
        return

    try:
        config = ProxyConfig.load_config(args.config_path)
        setup_logging(config.logging)
    except ConfigError as e:
        sys.stderr.write("Error in configuration: %s\n" % (e,))
        sys.exit(e.exit_code)

    from twisted.internet import reactor

    try:
        start(config, reactor)
    except CannotListenError as e:
        logger.error("Error in HTTP listener: %s", e)
        sys.exit(EXIT_LISTEN_FAILED)

    reactor.run()
