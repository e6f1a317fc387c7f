import logging
from typing import Optional

from rich.console import Console

from kube_waste.core.abstract.loaders import BaseMetricsSource, BaseWorkloadLister
from kube_waste.core.exceptions import KubeWasteError
from kube_waste.core.integrations.kubernetes import KubernetesMetricsSource, KubernetesWorkloadLister
from kube_waste.core.models.config import settings
from kube_waste.core.models.result import Result
from kube_waste.core.waste import find_wasteful_pods
from kube_waste.utils.version import get_version

logger = logging.getLogger("kube-waste")


def custom_print(*objects, rich: bool = True, force: bool = False) -> None:
    """
    A wrapper around `rich.print` that prints only if `settings.quiet` is False.
    """
    print_func = settings.logging_console.print if rich else print
    if not settings.quiet or force:
        print_func(*objects)  # type: ignore


class Runner:
    EXPECTED_EXCEPTIONS = (KubeWasteError,)

    def __init__(
        self,
        lister: Optional[BaseWorkloadLister] = None,
        metrics_source: Optional[BaseMetricsSource] = None,
    ) -> None:
        self._lister = lister
        self._metrics_source = metrics_source

    def _greet(self) -> None:
        if settings.quiet:
            return

        custom_print(f"\nRunning kube-waste {get_version()}")
        custom_print(f"Looking for pods using less than {settings.threshold:g}% of their requests")
        custom_print(f"Using formatter: {settings.format}")
        custom_print("")

    def _connect(self) -> tuple[BaseWorkloadLister, BaseMetricsSource]:
        if self._lister is None or self._metrics_source is None:
            settings.load_kubeconfig()
            logger.debug(f"Using {'in-cluster' if settings.inside_cluster else 'kubeconfig'} configuration")

        lister = self._lister or KubernetesWorkloadLister()
        metrics_source = self._metrics_source or KubernetesMetricsSource()
        return lister, metrics_source

    def _collect_result(self) -> Result:
        lister, metrics_source = self._connect()

        pods = find_wasteful_pods(lister, metrics_source, namespace=settings.namespace, threshold=settings.threshold)
        if not pods:
            logger.info("No wasteful pods found")

        return Result(
            pods=pods,
            threshold=settings.threshold,
            namespace=settings.namespace,
            description=f"[b]Wasteful pods[/b]\n\nPods using less than {settings.threshold:g}% of the memory or CPU they request",
        )

    def _process_result(self, result: Result) -> None:
        Formatter = settings.Formatter
        formatted = result.format(Formatter)
        rich = getattr(Formatter, "__rich_console__", False)

        custom_print(formatted, rich=rich, force=True)

        if settings.file_output:
            logger.info(f"Writing output to file: {settings.file_output}")
            with open(settings.file_output, "w") as target_file:
                if rich:
                    console = Console(file=target_file, width=settings.width)
                    console.print(formatted)
                else:
                    target_file.write(formatted)

    def run(self) -> int:
        """Run the Runner. The return value is the exit code of the program."""
        self._greet()

        try:
            result = self._collect_result()
            logger.info("Result collected, displaying...")
            self._process_result(result)
        except self.EXPECTED_EXCEPTIONS as e:
            logger.critical(e)
            return 1  # Exit with error
        except Exception:
            logger.exception("An unexpected error occurred")
            return 1  # Exit with error
        else:
            return 0  # Exit with success
