# src/psmbuild/assemble.py
"""Write the module's output directory: copied files plus the built .psm1."""

import shutil
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import NamedTuple

from apathetic_utils import has_glob_chars, plural

from . import psd1
from .config.config_types import ModuleInfo, PathResolved, TextBlockResolved
from .constants import (
    BUILD_CONFIG_NAMES,
    ENCODINGS,
    FRAGMENT_EXTENSION,
    MODULE_SCRIPT_EXTENSION,
    PASSTHRU_FILE_EXTENSIONS,
    REGION_BEGIN,
    REGION_END,
)
from .errors import FilesystemError
from .logs import getAppLogger


class Fragment(NamedTuple):
    display_path: str  # ./Public/Get-Foo.ps1
    path: Path
    text: str


class AssembledArtifact(NamedTuple):
    path: Path
    fragments: list[str]  # display paths, in output order
    encoding: str


# --------------------------------------------------------------------------- #
# copying
# --------------------------------------------------------------------------- #


def ensure_output_directory(output_directory: Path) -> None:
    try:
        output_directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        xmsg = f"Could not create output directory {output_directory}: {e}"
        raise FilesystemError(xmsg) from e


def copy_module_files(module_base: Path, output_directory: Path) -> list[Path]:
    """Copy manifests, scripts and type/format data next to the built module.

    Only files directly inside the module base are copied; the sidecar build
    config stays behind.
    """
    logger = getAppLogger()
    skip = {n.lower() for n in BUILD_CONFIG_NAMES}
    copied: list[Path] = []
    for p in sorted(module_base.iterdir()):
        if not p.is_file() or p.name.lower() in skip:
            continue
        if p.suffix.lower() not in PASSTHRU_FILE_EXTENSIONS:
            continue
        dest = output_directory / p.name
        try:
            shutil.copy2(p, dest)
        except OSError as e:
            xmsg = f"Could not copy {p.name} to {output_directory}: {e}"
            raise FilesystemError(xmsg) from e
        logger.trace("[ASSEMBLE] Copied %s", p.name)
        copied.append(dest)
    return copied


def copy_directories(
    entries: Iterable[PathResolved],
    output_directory: Path,
) -> list[Path]:
    """Copy each listed folder (or glob match) into the output directory."""
    logger = getAppLogger()
    copied: list[Path] = []
    for entry in entries:
        root = Path(entry["root"])
        pattern = str(entry["path"])
        if has_glob_chars(pattern):
            matches = sorted(root.glob(pattern))
        else:
            candidate = root / pattern
            matches = [candidate] if candidate.exists() else []
        if not matches:
            xmsg = f"Copy directory not found: {root / pattern}"
            raise FilesystemError(xmsg)

        for src in matches:
            dest = output_directory / src.name
            try:
                if src.is_dir():
                    shutil.copytree(src, dest, dirs_exist_ok=True)
                else:
                    shutil.copy2(src, dest)
            except OSError as e:
                xmsg = f"Could not copy {src} to {output_directory}: {e}"
                raise FilesystemError(xmsg) from e
            logger.debug("Copied %s → %s", src, dest)
            copied.append(dest)
    return copied


# --------------------------------------------------------------------------- #
# fragments
# --------------------------------------------------------------------------- #


def path_sort_key(path: Path, root: Path) -> tuple[str, str]:
    """Order files by relative path, ignoring case first.

    Fragments and exported function names both sort with this key, so
    FunctionsToExport lists functions in the order they appear in the .psm1.
    """
    rel = path.relative_to(root).as_posix()
    return rel.lower(), rel


def _display_path(path: Path, module_base: Path) -> str:
    try:
        return "./" + path.relative_to(module_base).as_posix()
    except ValueError:
        return path.as_posix()


def _read_source(path: Path) -> str:
    try:
        text, _encoding = psd1.read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        xmsg = f"Could not read {path}: {e}"
        raise FilesystemError(xmsg) from e
    return text.replace("\r\n", "\n")


def iter_fragments(
    module_base: Path,
    source_directories: Iterable[Path],
) -> Iterator[Fragment]:
    """Yield .ps1 fragments in concatenation order.

    Directories are visited in the order given; within each one files are
    sorted by their relative path. Missing directories are skipped and a
    file reachable from two directories is only yielded the first time.
    """
    logger = getAppLogger()
    seen: set[Path] = set()
    for directory in source_directories:
        if not directory.is_dir():
            logger.trace("[ASSEMBLE] No source directory %s", directory)
            continue
        files = [
            p
            for p in directory.rglob("*")
            if p.is_file() and p.suffix.lower() == FRAGMENT_EXTENSION
        ]
        files.sort(key=lambda p: path_sort_key(p, directory))
        for path in files:
            resolved = path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            display = _display_path(path, module_base)
            yield Fragment(display, path, _read_source(path))


def render_block(label: str, text: str) -> str:
    """Wrap text in Region markers naming where it came from."""
    body = text.rstrip("\n")
    lines = [REGION_BEGIN.format(label=label)]
    if body:
        lines.append(body)
    count = body.count("\n") + 1 if body else 0
    lines.append(REGION_END.format(label=label, lines=count))
    return "\n".join(lines)


def read_text_block(block: TextBlockResolved) -> str:
    if block["origin"] == "file":
        return _read_source(block["path"])
    return block.get("text", "")


def build_module_text(
    fragments: Iterable[Fragment],
    *,
    prefix: TextBlockResolved | None = None,
    postfix: TextBlockResolved | None = None,
) -> str:
    blocks: list[str] = []
    if prefix is not None:
        blocks.append(render_block(prefix["label"], read_text_block(prefix)))
    blocks.extend(render_block(f.display_path, f.text) for f in fragments)
    if postfix is not None:
        blocks.append(render_block(postfix["label"], read_text_block(postfix)))
    return "\n".join(blocks) + "\n" if blocks else ""


def write_artifact(path: Path, text: str, encoding: str) -> None:
    """Replace ``path`` with ``text`` in one of the ENCODINGS names."""
    codec = ENCODINGS[encoding]
    try:
        data = text.encode(codec)
    except UnicodeEncodeError as e:
        xmsg = f"Module text cannot be written as {encoding}: {e}"
        raise FilesystemError(xmsg) from e
    try:
        path.write_bytes(data)
    except OSError as e:
        xmsg = f"Could not write {path}: {e}"
        raise FilesystemError(xmsg) from e


# --------------------------------------------------------------------------- #
# main entry
# --------------------------------------------------------------------------- #


def assemble_module(info: ModuleInfo) -> AssembledArtifact:
    """Populate the output directory and write ``<Name>.psm1``."""
    logger = getAppLogger()
    module_base = info["module_base"]
    output_directory = info["output_directory"]

    ensure_output_directory(output_directory)
    copy_module_files(module_base, output_directory)
    if info["copy_directories"]:
        copy_directories(info["copy_directories"], output_directory)

    fragments = list(iter_fragments(module_base, info["source_directories"]))
    logger.debug("Collected %d fragment%s", len(fragments), plural(fragments))
    for i, f in enumerate(fragments, 1):
        logger.trace(f"[ASSEMBLE]   {i:02d}. {f.display_path}")

    text = build_module_text(
        fragments, prefix=info["prefix"], postfix=info["postfix"]
    )
    out_path = output_directory / f"{info['name']}{MODULE_SCRIPT_EXTENSION}"
    write_artifact(out_path, text, info["encoding"])
    logger.info(
        "🧵 Wrote %s (%d fragment%s)", out_path, len(fragments), plural(fragments)
    )

    return AssembledArtifact(
        out_path, [f.display_path for f in fragments], info["encoding"]
    )
