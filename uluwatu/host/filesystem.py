"""File system operations."""

import hashlib
import shutil
from pathlib import Path


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists, create if not.

    Args:
        path: Path to directory

    Returns:
        Path object for the directory
    """
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def clear_dir(path: str | Path) -> Path:
    """Empty a directory, creating it if missing.

    The directory itself is kept so that a mount point or an open shell
    inside it survives a rebuild.
    """
    p = ensure_dir(path)
    for child in p.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
    return p


def copy_tree(src: str | Path, dst: str | Path) -> int:
    """Copy every file under src into dst, preserving relative paths.

    Returns:
        Number of files copied (0 when src does not exist)
    """
    src, dst = Path(src), Path(dst)
    if not src.is_dir():
        return 0
    count = 0
    for file in sorted(src.rglob("*")):
        if not file.is_file():
            continue
        target = dst / file.relative_to(src)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(file, target)
        count += 1
    return count


def _iter_files(root: Path):
    for file in sorted(root.rglob("*")):
        if file.is_file():
            yield file.relative_to(root).as_posix(), file


def tree_digest(root: str | Path) -> str:
    """Compute SHA256 over sorted relative paths and file contents.

    Two directories have the same digest exactly when they hold the same
    files with the same bytes. Modification times are ignored.
    """
    digest = hashlib.sha256()
    for rel, file in _iter_files(Path(root)):
        digest.update(rel.encode())
        digest.update(b"\0")
        digest.update(hashlib.sha256(file.read_bytes()).digest())
    return digest.hexdigest()


def diff_trees(a: str | Path, b: str | Path) -> list[str]:
    """List relative paths that are missing on one side or differ in content."""
    left = {rel: file for rel, file in _iter_files(Path(a))}
    right = {rel: file for rel, file in _iter_files(Path(b))}
    differing = []
    for rel in sorted(left.keys() | right.keys()):
        if rel not in left or rel not in right:
            differing.append(rel)
        elif left[rel].read_bytes() != right[rel].read_bytes():
            differing.append(rel)
    return differing
