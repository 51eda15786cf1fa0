# src/psmbuild/constants.py
"""Central constants used across the project."""


# --- env keys ---
DEFAULT_ENV_LOG_LEVEL: str = "LOG_LEVEL"
DEFAULT_ENV_WATCH_INTERVAL: str = "WATCH_INTERVAL"

# --- program defaults ---
DEFAULT_LOG_LEVEL: str = "info"
DEFAULT_WATCH_INTERVAL: float = 1.0  # seconds

# --- file conventions ---
MANIFEST_EXTENSION: str = ".psd1"
FRAGMENT_EXTENSION: str = ".ps1"
MODULE_SCRIPT_EXTENSION: str = ".psm1"

# copied verbatim from the module base into the output directory
PASSTHRU_FILE_EXTENSIONS: tuple[str, ...] = (".psd1", ".psm1", ".ps1xml")

# folders that only hold the sources; the module is named after their parent
CONTAINER_DIR_NAMES: frozenset[str] = frozenset({"source", "src"})

# sidecar build config candidates, in priority order
BUILD_CONFIG_NAMES: tuple[str, ...] = (
    "build.psd1",
    "build.jsonc",
    "build.json",
    "build.toml",
)

DEFAULT_OUTPUT_DIR_NAME: str = "Output"

# --- manifest fields ---
MANIFEST_EXPORTS_KEY: str = "FunctionsToExport"
MANIFEST_VERSION_KEY: str = "ModuleVersion"
MANIFEST_PRERELEASE_KEY: str = "Prerelease"
MANIFEST_PSDATA_PATH: tuple[str, ...] = ("PrivateData", "PSData")

# --- build defaults ---
DEFAULT_SOURCE_DIRECTORIES: list[str] = ["Enum", "Classes", "Private", "Public"]
DEFAULT_PUBLIC_FILTER: str = "Public/*.ps1"
DEFAULT_ENCODING: str = "UTF8"
DEFAULT_TARGET: str = "CleanBuild"
DEFAULT_PASSTHRU: bool = False
DEFAULT_VERSIONED_OUTPUT_DIRECTORY: bool = False

# Manifest diagnostics matched by substring are logged instead of failing
# the build. RootModule usually points at the .psm1 that the build creates.
DEFAULT_SUPPRESS_DIAGNOSTICS: list[str] = ["InvalidNestedModule", "InvalidRootModule"]

# encoding name -> python codec
ENCODINGS: dict[str, str] = {
    "UTF8": "utf-8",
    "UTF7": "utf-7",
    "ASCII": "ascii",
    "Unicode": "utf-16",
    "UTF16": "utf-16",
    "UTF32": "utf-32",
}

TARGETS: tuple[str, ...] = ("Clean", "Build", "CleanBuild")

# --- artifact delimiters ---
PREFIX_LABEL: str = "PREFIX"
POSTFIX_LABEL: str = "POSTFIX"
REGION_BEGIN: str = "#Region '{label}' 0"
REGION_END: str = "#EndRegion '{label}' {lines}"
