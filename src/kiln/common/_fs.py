import errno
import shutil
from pathlib import Path


def safe_rmpath(path: Path) -> bool:
    """
    Removes the specified *path* from the file system. If it is a directory, :func:`shutil.rmtree` will be used
    with `ignore_errors` enabled. Returns `True` if something was removed.
    """

    if path.is_dir():
        shutil.rmtree(path, ignore_errors=True)
        return True
    try:
        path.unlink()
    except OSError as exc:
        if exc.errno != errno.ENOENT:
            raise
        return False
    return True
