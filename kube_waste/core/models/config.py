from __future__ import annotations

import logging
import sys
from typing import Any, Optional

import pydantic as pd
from kubernetes import config
from kubernetes.config.config_exception import ConfigException
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console
from rich.logging import RichHandler

from kube_waste import formatters as concrete_formatters  # noqa: F401
from kube_waste.core.abstract import formatters
from kube_waste.core.exceptions import SourceUnavailable
from kube_waste.core.selection import DEFAULT_UTILIZATION_THRESHOLD

logger = logging.getLogger("kube-waste")


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KUBE_WASTE_")

    quiet: bool = pd.Field(False)
    verbose: bool = pd.Field(False)

    # Kubernetes Settings
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    namespace: Optional[str] = pd.Field(None)  # None means all namespaces

    # Selection Settings
    threshold: float = pd.Field(DEFAULT_UTILIZATION_THRESHOLD, ge=0, le=100)  # in percents

    # Logging Settings
    format: str = pd.Field("table")
    log_to_stderr: bool = pd.Field(False)
    width: Optional[int] = pd.Field(None, ge=1)

    # Output Settings
    file_output: Optional[str] = pd.Field(None)

    # Internal
    inside_cluster: bool = False
    _logging_console: Optional[Console] = pd.PrivateAttr(None)

    @property
    def Formatter(self) -> formatters.FormatterFunc:
        return formatters.find(self.format)

    @pd.field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v.strip() in ("", "*"):
            return None

        return v.strip().lower()

    @pd.field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        formatters.find(v)  # NOTE: raises if formatter is not found
        return v

    @property
    def logging_console(self) -> Console:
        if self._logging_console is None:
            self._logging_console = Console(file=sys.stderr if self.log_to_stderr else sys.stdout, width=self.width)
        return self._logging_console

    def load_kubeconfig(self) -> None:
        """Load the kubeconfig file, falling back to the in-cluster configuration.

        Raises:
            SourceUnavailable: If neither can be loaded.
        """

        try:
            config.load_kube_config(config_file=self.kubeconfig, context=self.context)
            self.inside_cluster = False
        except ConfigException as kubeconfig_error:
            try:
                config.load_incluster_config()
            except ConfigException:
                raise SourceUnavailable(f"Could not load kubernetes configuration: {kubeconfig_error}") from kubeconfig_error
            self.inside_cluster = True

    @staticmethod
    def set_config(config: Config) -> None:
        global _config

        _config = config
        logging.basicConfig(
            level="NOTSET",
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=config.logging_console)],
            force=True,
        )
        logging.getLogger("").setLevel(logging.CRITICAL)
        logger.setLevel(logging.DEBUG if config.verbose else logging.CRITICAL if config.quiet else logging.INFO)

    @staticmethod
    def get_config() -> Optional[Config]:
        return _config


# NOTE: This class is just a proxy for _config.
# Import settings from this module and use it like it is just a config object.
class _Settings:
    def __getattr__(self, name: str) -> Any:
        if _config is None:
            raise AttributeError("Config is not set")

        return getattr(_config, name)


_config: Optional[Config] = None
settings = _Settings()
