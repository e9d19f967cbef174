"""mkdir -p and rm -rf on top of single-level filesystem primitives.

Neither operation is transactional. Both stop at the first error and leave
whatever was already created or removed in place.
"""

import logging
import posixpath

from devsession.errors import NoSuchFile, NotADirectory
from devsession.protocols import FilesystemOperations
from devsession.utils.validation import require_absolute

logger = logging.getLogger(__name__)


async def mkdir_recursive(fs: FilesystemOperations, path: str) -> None:
    """Create a directory and any missing parents.

    Safe to re-run after a partial failure: existing directories are skipped.

    Args:
        fs: Filesystem to operate on
        path: Absolute remote path

    Raises:
        InvalidArgument: If path is not absolute (no remote call is made)
        NotADirectory: If a prefix exists but is not a directory
    """
    require_absolute(path)

    part = "/"
    for name in path.split("/"):
        if not name:
            continue
        part = posixpath.join(part, name)
        try:
            attrs = await fs.stat(part)
        except NoSuchFile:
            await fs.mkdir(part)
            continue

        if not attrs.is_directory():
            raise NotADirectory(
                f'Cannot create directory: "{part}" exists but isn\'t a directory',
                path=part,
            )


async def remove_recursive(fs: FilesystemOperations, path: str) -> None:
    """Remove a file, or a directory and everything below it.

    Children are removed depth-first in listing order. Symlinks are removed
    themselves and never followed.

    Args:
        fs: Filesystem to operate on
        path: Absolute remote path to remove

    Raises:
        InvalidArgument: If path is not absolute (no remote call is made)
    """
    require_absolute(path)
    await _remove_tree(fs, path)


async def _remove_tree(fs: FilesystemOperations, path: str) -> None:
    attrs = await fs.lstat(path)
    if attrs.is_directory():
        for entry in await fs.list(path):
            await _remove_tree(fs, posixpath.join(path, entry.filename))
        await fs.rmdir(path)
    else:
        await fs.unlink(path)
    logger.debug("Removed %s", path)
