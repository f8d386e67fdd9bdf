"""
bufferwatch - CLI Interface

Reports the buffer backlog of every log forwarder pod in the cluster.
"""

import logging
import sys

import click
from rich.console import Console
from rich.markup import escape

from .checker import BufferHealthChecker
from .cluster import ClusterError, create_client
from .config import ConfigError, Settings


console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def print_error(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)


def setup_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


@click.command(
    context_settings={"ignore_unknown_options": True, "help_option_names": []},
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(ctx: click.Context, args):
    """Check the on-disk buffer backlog of the log forwarder pods.

    Lists the forwarder pods, inspects each pod's buffer directory and prints
    a SUMMARY table. A pod is green while its oldest buffer file is younger
    than 60s, yellow below 300s and red from 300s on.

    Takes no arguments: any argument prints this help. Configure through the
    environment:

    \b
      PER_POD=true             also print one row per pod
      LOGGING_NAMESPACE        namespace of the forwarder pods (openshift-logging)
      BUFFER_LABEL_SELECTOR    forwarder pod selector (component=fluentd)
      BUFFER_DIR               buffer directory in the pod (/var/lib/fluentd)
      BUFFER_FILE_PATTERN      buffer file name pattern (*.log)
      BUFFER_CONTAINER         container to inspect (pod default)
      NODE_TYPE_LABEL          node label holding the node type (type)
      CLUSTER_BACKEND          api or kubectl (api)
      KUBECTL_BINARY           kubectl or oc (kubectl)
      KUBECONFIG_PATH          kubeconfig file (default discovery)
      EXEC_TIMEOUT_SECONDS     timeout of one remote listing (30)
      YELLOW_AGE_SECONDS       yellow threshold (60)
      RED_AGE_SECONDS          red threshold (300)
      OUTPUT_FORMAT            text or json (text)
      LOG_LEVEL                log level on stderr (WARNING)
    """
    if args:
        click.echo(ctx.get_help())
        ctx.exit(0)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print_error(f"Error: {e}")
        raise SystemExit(1)

    setup_logging(settings.log_level)

    try:
        client = create_client(settings)
        checker = BufferHealthChecker(client, settings, err=print_error)
        exit_code = checker.run()
    except ClusterError as e:
        print_error(f"Error: {e}")
        raise SystemExit(1)

    ctx.exit(exit_code)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
