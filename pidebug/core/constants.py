"""
Project constants definitions
"""

# ============================================================
# Remote Filesystem Layout
# ============================================================

REMOTE_DOTNET_FOLDER = "/lib/dotnet"
REMOTE_DOTNET_COMMAND = "/lib/dotnet/dotnet"
REMOTE_DEBUGGER_FOLDER = REMOTE_DOTNET_FOLDER + "/vsdbg"
REMOTE_DEBUGGER_PATH = REMOTE_DEBUGGER_FOLDER + "/vsdbg"
REMOTE_PROFILE_PATH = "/etc/profile"
REMOTE_TEMP_FOLDER = "/tmp"
REMOTE_SDK_ARCHIVE = "/tmp/dotnet-sdk.tar.gz"

DEBUGGER_INSTALLER_URI = "https://aka.ms/getvsdbgsh"


def remote_home(username: str) -> str:
    if not username:
        raise ValueError("username is required")
    return "/root" if username == "root" else f"/home/{username}"


def remote_debug_binary_root(username: str) -> str:
    """Per-user upload root, e.g. ``/home/pi/vsdbg``"""
    return f"{remote_home(username)}/vsdbg"


# ============================================================
# Status Probe Sentinels
# ============================================================

UNZIP_PRESENT = "unzip"
UNZIP_MISSING = "unzip-missing"
DEBUGGER_PRESENT = "debugger-installed"
DEBUGGER_MISSING = "debugger-missing"

# uname -m tokens
BITNESS_32_MARKERS = ("armv3", "armv6", "armv7")
BITNESS_64_MARKERS = ("armv8", "aarch64", "arm64")

SUPPORTED_MODEL_PREFIXES = (
    "Raspberry Pi 3 Model",
    "Raspberry Pi 4 Model",
    "Raspberry Pi 5",
    "Raspberry Pi Compute Module 4",
    "Raspberry Pi Zero 2",
)

# ============================================================
# Install Scripts
# ============================================================

STAGE_MARKER = "pidebug-stage:"
CHECKSUM_MISMATCH_EXIT_CODE = 3

SDK_DEPENDENCY_PACKAGES = (
    "libc6",
    "libgcc1",
    "libgssapi-krb5-2",
    "libicu-dev",
    "libssl-dev",
    "libstdc++6",
    "zlib1g",
)

# ============================================================
# Retry / Polling
# ============================================================

RETRY_ATTEMPTS = 3
RETRY_BACKOFF = 0.2
LISTEN_POLL_INTERVAL = 0.5
LISTEN_POLL_TIMEOUT = 30.0
LISTEN_SETTLE_DELAY = 1.0

# ============================================================
# Default Values
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 10
DEFAULT_USER = "pi"
DEFAULT_PASSWORD = "raspberry"
DEFAULT_TARGET_GROUP = "gpio"
DEFAULT_CATALOG_TIMEOUT = 5.0
SSH_KEY_BITS = 2048

# ============================================================
# Local State
# ============================================================

DEFAULT_SETTINGS_DIR = "~/.pidebug"
KEYS_DIR_NAME = "keys"
CONNECTIONS_FILE_NAME = "connections.json"
CATALOG_OVERRIDE_FILE_NAME = "sdk-catalog.json"
PROJECTS_FILE_NAME = "pidebug-projects.json"
BUNDLED_CATALOG_RESOURCE = "sdk-catalog.json"

# Fills in checksums missing from the bundled catalog
VERIFY_CATALOG_COMMAND = "pidebug catalog check --verify --save"

DEFAULT_CONNECTION_TARGET = "default"
