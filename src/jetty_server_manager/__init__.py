# jetty_server_manager/__init__.py
import logging

from jetty_server_manager.config.const import get_installed_version
from jetty_server_manager.core.lifecycle import ServerLifecycleController
from jetty_server_manager.core.models import (
    EnvironmentVariable,
    LaunchSpec,
    ServerModel,
)

logger = logging.getLogger(__name__)

__version__ = get_installed_version()

__all__ = [
    "EnvironmentVariable",
    "LaunchSpec",
    "ServerLifecycleController",
    "ServerModel",
    "__version__",
]
