# jetty_server_manager/config/const.py
from importlib.metadata import version, PackageNotFoundError

# --- Package Constants ---
package_name = "jetty-server-manager"
app_name_title = package_name.replace("-", " ").title()
app_author = "jetty-server-manager"
env_name = package_name.replace("-", "_").upper()

# --- Launcher layout ---
BIN_DIR = "bin"
DEFAULT_PLUGIN_NAME = "jetty"
WINDOWS_LAUNCHER_FILE_NAME = "jetty.bat"
POSIX_LAUNCHER_FILE_NAME = "jetty.sh"
CHMOD_EXECUTABLE = "/bin/chmod"

# --- Environment variable names ---
JAVA_HOME_ENV_VAR = "JAVA_HOME"
JAVA_VM_ENV_VAR = "JAVA_OPTS"
JETTY_HOME_ENV_VAR = "JETTY_HOME"
JETTY_OPTS_ENV_VAR = "JETTY_OPTS"

# --- Jetty command line ---
JETTY_START_JAR = "start.jar"
JETTY_CONTEXT_DEPLOYER_CONFIG_FILE_NAME = "override-web.xml"
MAX_STOP_PORT = 99999


def get_installed_version() -> str:
    try:
        installed_version = version(package_name)
        return installed_version
    except PackageNotFoundError:
        installed_version = "0.0.0"
        return installed_version
