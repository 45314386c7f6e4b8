"""Ancestry closure for acknowledged paths.

Acknowledging a path pulls in everything the sync consumer needs to place it:
the path itself, every ancestor directory, and the metadata files that
describe it (``foo.meta.json`` beside ``foo.server.lua``, ``init.meta.json``
beside ``init.lua``).
"""

from pathlib import Path

# Checked in order, so compound suffixes win over their tails.
SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".server.luau",
    ".server.lua",
    ".client.luau",
    ".client.lua",
    ".luau",
    ".lua",
)

METADATA_SUFFIX = ".meta.json"
INIT_PREFIX = "init."
INIT_METADATA_NAME = "init.meta.json"
PROJECT_FILE_NAMES: tuple[str, ...] = ("default.project.json", "default.project.jsonc")


def normalize_path(path: Path) -> Path:
    """Return the canonical form of ``path``, or ``path`` itself if it does not exist.

    Deleted files cannot be canonicalized, so they keep the literal form the
    version-control query reported.
    """
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        return path


def strip_source_extension(file_name: str) -> str:
    """Strip a recognized source extension, falling back to the last generic one.

    >>> strip_source_extension("foo.server.lua")
    'foo'
    >>> strip_source_extension("bar.txt")
    'bar'
    """
    for extension in SOURCE_EXTENSIONS:
        if file_name.endswith(extension):
            return file_name[: -len(extension)]

    if "." in file_name:
        return file_name.rpartition(".")[0]
    return file_name


def metadata_paths(path: Path) -> set[Path]:
    """Metadata files derived from ``path`` (its ``.meta.json`` sibling and, for init files, ``init.meta.json``)."""
    file_name = path.name
    if not file_name:
        return set()

    parent = path.parent
    derived = {normalize_path(parent / f"{strip_source_extension(file_name)}{METADATA_SUFFIX}")}
    if file_name.startswith(INIT_PREFIX):
        derived.add(normalize_path(parent / INIT_METADATA_NAME))
    return derived


def expand(path: Path) -> set[Path]:
    """
    Expand a path into its acknowledgment closure.

    Args:
        path: Path reported as changed or explicitly acknowledged

    Returns:
        The normalized path, all of its ancestor directories and its derived
        metadata files
    """
    normalized = normalize_path(Path(path))

    closure = {normalized}
    closure.update(normalized.parents)
    closure.update(metadata_paths(normalized))
    return closure


def expand_anchor(path: Path) -> set[Path]:
    """
    Expand a project anchor so the project structure always syncs.

    On top of :func:`expand`, a project directory pins the default project
    files inside it, and a project file pins its containing directory.

    Args:
        path: Project directory or project file

    Returns:
        Closure to acknowledge permanently
    """
    raw = Path(path)
    closure = expand(raw)

    if raw.is_dir():
        for name in PROJECT_FILE_NAMES:
            closure.add(normalize_path(raw / name))

    closure.add(normalize_path(raw.parent))
    return closure
