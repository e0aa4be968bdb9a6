"""
Working directory archiving.

After each invocation its vardir is packed into results_dir/var-<comment>.tar.gz
and removed, so the next invocation starts from a clean tree and the results
directory holds everything needed to inspect a failure.
"""

import os
import shutil
import tarfile
from pathlib import Path
from typing import List, Optional, Union


def archive_directory(directory: Union[str, Path], archive_path: Union[str, Path]) -> Path:
    """
    Pack a directory's contents into a gzip tarball and remove the directory.

    Members are stored relative to the directory itself (no leading
    directory component). The archive is written under a temporary name and
    renamed once complete.

    Args:
        directory: Directory to archive
        archive_path: Output .tar.gz path

    Returns:
        Path to created archive

    Raises:
        OSError: If the archive cannot be written (no partial file is left
            behind and the directory is not removed)
    """
    directory = Path(directory)
    archive_path = Path(archive_path)
    archive_path.parent.mkdir(parents=True, exist_ok=True)

    partial_path = archive_path.with_name(archive_path.name + '.partial')
    try:
        with tarfile.open(partial_path, 'w:gz') as tar:
            for child in sorted(directory.iterdir()):
                tar.add(child, arcname=child.name)
        os.replace(partial_path, archive_path)
    except Exception:
        # The directory is kept: it is the only copy of the run's state
        partial_path.unlink(missing_ok=True)
        raise

    # vardir may be a symlink into a memory filesystem (mysql-test-run --mem)
    if directory.is_symlink():
        shutil.rmtree(directory.resolve())
        directory.unlink()
    else:
        shutil.rmtree(directory)
    return archive_path


def archive_if_present(
    directory: Union[str, Path],
    archive_path: Union[str, Path],
) -> Optional[Path]:
    """
    Archive a directory if it exists.

    Test tools may legitimately not create their vardir (e.g. when they fail
    during startup), so a missing directory is not an error.

    Returns:
        Path to created archive, or None if the directory does not exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        return None

    print(f"  Archiving {directory} -> {archive_path}")
    return archive_directory(directory, archive_path)


def list_archive(archive_path: Union[str, Path]) -> List[str]:
    """
    List regular files stored in an archive.

    Args:
        archive_path: Path to .tar.gz archive

    Returns:
        Sorted list of member names (relative paths)
    """
    with tarfile.open(archive_path, 'r:gz') as tar:
        return sorted(m.name for m in tar.getmembers() if m.isfile())
