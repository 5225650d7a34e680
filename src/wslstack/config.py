import os
import platform


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def get_data_dir() -> str:
    """Get the base data directory for the current platform."""
    env_data_dir = os.getenv("WSLSTACK_DATA_DIR")
    if env_data_dir:
        return env_data_dir

    if platform.system().lower() == "windows":
        return os.path.expandvars("%LOCALAPPDATA%\\wslstack")
    home = os.path.expanduser("~")
    return os.path.join(home, ".local", "share", "wslstack")


DATA_DIR = get_data_dir()
DATABASE_URL = os.getenv(
    "WSLSTACK_DATABASE_URL",
    "sqlite:///" + os.path.join(DATA_DIR, "wslstack.db").replace("\\", "/"),
)

# Target distribution and the OS user created inside it
DISTRO_NAME = os.getenv("WSLSTACK_DISTRO_NAME", "Ubuntu-22.04")
WSL_USER = os.getenv("WSLSTACK_WSL_USER", "donna")
WSL_PASSWORD = os.getenv("WSLSTACK_WSL_PASSWORD", "harvey")

DOCKER_TCP_HOST = os.getenv("WSLSTACK_DOCKER_TCP_HOST", "127.0.0.1")
DOCKER_TCP_PORT = int(os.getenv("WSLSTACK_DOCKER_TCP_PORT", "2375"))
DOCKER_TCP_URL = f"tcp://{DOCKER_TCP_HOST}:{DOCKER_TCP_PORT}"

# Distro install polling, in seconds. A max wait of 0 disables the cap.
INSTALL_POLL_INTERVAL = _get_float("WSLSTACK_INSTALL_POLL_INTERVAL", 5.0)
INSTALL_SETTLE_GRACE = _get_float("WSLSTACK_INSTALL_SETTLE_GRACE", 10.0)
INSTALL_MAX_WAIT = _get_float("WSLSTACK_INSTALL_MAX_WAIT", 1800.0)

COMMAND_TIMEOUT = _get_float("WSLSTACK_COMMAND_TIMEOUT", 600.0)
SETUP_SCRIPT_TIMEOUT = _get_float("WSLSTACK_SETUP_SCRIPT_TIMEOUT", 1800.0)
