from __future__ import annotations

import logging
from typing import Optional

import typer
import urllib3
from pydantic import ValidationError

from kube_waste import formatters as concrete_formatters  # noqa: F401
from kube_waste.core.abstract import formatters
from kube_waste.core.models.config import Config
from kube_waste.core.runner import Runner
from kube_waste.core.selection import DEFAULT_UTILIZATION_THRESHOLD
from kube_waste.utils.version import get_version

app = typer.Typer(
    pretty_exceptions_show_locals=False,
    pretty_exceptions_short=True,
    no_args_is_help=True,
    help="Find the running pods that use only a small part of the CPU or memory they request.",
)

# NOTE: Disable insecure request warnings, as it might be expected to use self-signed certificates inside the cluster
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

logger = logging.getLogger("kube-waste")


@app.command(rich_help_panel="Utils")
def version() -> None:
    typer.echo(get_version())


@app.command()
def waste(
    kubeconfig: Optional[str] = typer.Option(
        None,
        "--kubeconfig",
        "-k",
        help="Path to kubeconfig file. If not provided, will attempt to find it.",
        rich_help_panel="Kubernetes Settings",
    ),
    context: Optional[str] = typer.Option(
        None,
        "--context",
        "-c",
        help="Kubeconfig context to use. The current context is used by default.",
        rich_help_panel="Kubernetes Settings",
    ),
    namespace: Optional[str] = typer.Option(
        None,
        "--namespace",
        "-n",
        help="Namespace to inspect. All namespaces are inspected by default.",
        rich_help_panel="Kubernetes Settings",
    ),
    threshold: float = typer.Option(
        DEFAULT_UTILIZATION_THRESHOLD,
        "--threshold",
        "-t",
        help="Utilization percentage below which a resource is considered wasted.",
        rich_help_panel="Selection Settings",
    ),
    format: str = typer.Option(
        "table",
        "--formatter",
        "-f",
        help=f"Output formatter ({', '.join(formatters.list_available())})",
        rich_help_panel="Logging Settings",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose mode", rich_help_panel="Logging Settings"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Enable quiet mode", rich_help_panel="Logging Settings"),
    log_to_stderr: bool = typer.Option(
        False, "--logtostderr", help="Pass logs to stderr", rich_help_panel="Logging Settings"
    ),
    width: Optional[int] = typer.Option(
        None,
        "--width",
        help="Width of the output. Will use console width by default.",
        rich_help_panel="Logging Settings",
    ),
    file_output: Optional[str] = typer.Option(
        None,
        "--fileoutput",
        help="Filename to write output to (if not specified, file output is disabled)",
        rich_help_panel="Output Settings",
    ),
) -> None:
    """List the running pods whose memory or CPU utilization is below the threshold, least utilized first."""

    try:
        config = Config(
            kubeconfig=kubeconfig,
            context=context,
            namespace=namespace,
            threshold=threshold,
            format=format,
            verbose=verbose,
            quiet=quiet,
            log_to_stderr=log_to_stderr,
            width=width,
            file_output=file_output,
        )
        Config.set_config(config)
    except ValidationError:
        logger.exception("Error occured while parsing arguments")
        raise typer.Exit(code=1)
    else:
        runner = Runner()
        exit_code = runner.run()
        raise typer.Exit(code=exit_code)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
