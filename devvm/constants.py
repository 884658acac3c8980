"""Global constants and path configuration for devvm."""

from __future__ import annotations

from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = PACKAGE_DIR / "data" / "environment.yaml"
TEMPLATES_DIR = PACKAGE_DIR / "templates"
VAGRANTFILE_TEMPLATE = TEMPLATES_DIR / "Vagrantfile"
COMPOSE_OVERRIDE_TEMPLATE = TEMPLATES_DIR / "docker-compose.override.yml"
COMPOSE_OVERRIDE_NAME = "docker-compose.override.yml"

MARKER_NAME = ".devvm"

# Environment variables
PROVIDER_ENV = "VAGRANT_DEFAULT_PROVIDER"
ARCH_ENV = "DEVVM_ARCH"
CONFIG_ENV = "DEVVM_CONFIG"
SERVICE_HOST_ENV = "SERVICE_HOST"

PROVIDER_VIRTUALBOX = "virtualbox"
PROVIDER_PARALLELS = "parallels"
SUPPORTED_PROVIDERS = (PROVIDER_VIRTUALBOX, PROVIDER_PARALLELS)

# Hosts that get Parallels by default: (platform.system(), machine)
PARALLELS_SYSTEM = "Darwin"
ARM64_MACHINES = {"arm64", "aarch64"}

BASE_TOOLS = ("git", "vagrant")
PROVIDER_TOOLS = {
    PROVIDER_VIRTUALBOX: "VBoxManage",
    PROVIDER_PARALLELS: "prlctl",
}

INSTALL_GUIDANCE = {
    "git": (
        "git is required to clone the project repositories.\n"
        "  macOS:  xcode-select --install  (or: brew install git)\n"
        "  Linux:  install the 'git' package with your distribution's package manager"
    ),
    "vagrant": (
        "Vagrant is required to manage the development VM.\n"
        "  macOS:  brew install --cask vagrant\n"
        "  Other:  https://developer.hashicorp.com/vagrant/downloads"
    ),
    "VBoxManage": (
        "VirtualBox is required for the 'virtualbox' provider.\n"
        "  macOS:  brew install --cask virtualbox\n"
        "  Other:  https://www.virtualbox.org/wiki/Downloads"
    ),
    "prlctl": (
        "Parallels Desktop (Pro or Business edition) is required for the 'parallels' provider.\n"
        "  Install it from https://www.parallels.com/products/desktop/ and make sure\n"
        "  'prlctl' is on your PATH."
    ),
}

LOG_RETRY_DELAY = 1.0
PATCH_DOWNLOAD_TIMEOUT = 30
USER_AGENT = "devvm/patcher"

TRUTHY = {"1", "true", "yes", "on"}

HEX_SHA256_LEN = 64
