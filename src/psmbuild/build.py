# src/psmbuild/build.py


from collections.abc import Sequence
from pathlib import Path

from . import psd1
from .assemble import assemble_module
from .config import BuildConfig, ModuleInfo, OriginType, resolve_build_config
from .constants import MANIFEST_EXTENSION
from .errors import ManifestLoadError
from .logs import getAppLogger
from .patch import patch_manifest
from .staleness import should_build


def build_module(info: ModuleInfo) -> ModuleInfo | None:
    """Run one resolved module through clean/assemble/patch.

    Returns ``info`` (with the artifact paths and patched manifest filled
    in) when ``passthru`` is set and a build happened, otherwise None. A
    ``Clean`` target, or a ``Build`` target whose output is already up to
    date, builds nothing and so returns None even with ``passthru``.
    """
    logger = getAppLogger()
    name = info["name"]
    output_directory = info["output_directory"]

    config_path = info["__meta__"]["config_path"]
    if config_path:
        logger.info("🔧 Using config: %s", config_path)
    logger.info("📦 %s (%s) → %s", name, info["target"], output_directory)

    if not should_build(info["target"], info["module_base"], output_directory):
        return None

    artifact = assemble_module(info)

    output_manifest = output_directory / f"{name}{MANIFEST_EXTENSION}"
    patch_manifest(output_manifest, info["public_filter"], info["module_version"])

    info["artifact_path"] = artifact.path
    info["output_manifest_path"] = output_manifest
    try:
        info["manifest"] = psd1.load(output_manifest)
    except (OSError, ValueError) as e:
        xmsg = f"Could not reload patched manifest {output_manifest}: {e}"
        raise ManifestLoadError(xmsg) from e

    logger.info("✅ Built %s → %s\n", name, artifact.path)
    return info if info["passthru"] else None


def run_build(
    path: Path | str,
    overrides: BuildConfig | None = None,
    *,
    overrides_origin: OriginType = "code",
) -> ModuleInfo | None:
    """Resolve and build the module at ``path``.

    Returns the built ModuleInfo when ``passthru`` is set, otherwise None.
    Nothing is returned when the target skips the build: ``Clean``, or
    ``Build`` with the output already up to date.
    """
    info = resolve_build_config(path, overrides, overrides_origin=overrides_origin)
    return build_module(info)


def run_all_builds(
    paths: Sequence[Path | str],
    overrides: BuildConfig | None = None,
    *,
    overrides_origin: OriginType = "code",
) -> list[ModuleInfo]:
    """Build each source path in turn; the first failure stops the run."""
    logger = getAppLogger()
    logger.trace(f"[run_all_builds] Processing {len(paths)} module(s)")

    results: list[ModuleInfo] = []
    for i, path in enumerate(paths, 1):
        if len(paths) > 1:
            logger.info("▶️  Build %d/%d", i, len(paths))
        info = run_build(path, overrides, overrides_origin=overrides_origin)
        if info is not None:
            results.append(info)

    logger.info("🎉 All builds complete.")
    return results
