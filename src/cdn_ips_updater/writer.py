"""Persistence of IP lists into the target directory.

Lists are written to a temporary file next to the destination and renamed
into place, so readers of the final path only ever see a complete list.
"""

import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from cdn_ips_updater.exceptions import WriteError
from cdn_ips_updater.utils.logging import log_success

logger = logging.getLogger(__name__)


def prepare_directory(path: str | Path, mode: int = 0o755) -> Path:
    """Create the target directory if needed and apply its mode.

    The mode is applied on every call, whatever the directory had before.

    Args:
        path: Directory to prepare.
        mode: Permission bits to apply.

    Returns:
        The directory path.

    Raises:
        WriteError: If the directory cannot be created or chmod fails.
    """
    directory = Path(path)
    logger.info("Preparing target directory: %s", directory)

    if directory.is_dir():
        logger.info("Directory %s already exists", directory)
    else:
        logger.info("Directory %s does not exist, creating it", directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to create directory {directory}: {e}"
            raise WriteError(msg, path=str(directory)) from e
        log_success(logger, "Directory %s created", directory)

    logger.info("Setting permissions %s on %s", oct(mode)[2:], directory)
    try:
        directory.chmod(mode)
    except OSError as e:
        msg = f"Failed to set permissions on {directory}: {e}"
        raise WriteError(msg, path=str(directory)) from e

    return directory


def write_ip_list(
    directory: str | Path,
    filename: str,
    ips: Iterable[str],
    file_mode: int = 0o644,
) -> int:
    """Atomically write an IP list, one entry per line.

    Args:
        directory: Existing target directory.
        filename: Name of the list file inside ``directory``.
        ips: Addresses to write.
        file_mode: Permission bits of the resulting file.

    Returns:
        Number of lines written.

    Raises:
        WriteError: If the file cannot be written. The destination keeps its
            previous content and the temporary file is removed.
    """
    if not filename or os.sep in filename or filename in (".", ".."):
        msg = f"Invalid list file name: {filename!r}"
        raise WriteError(msg, path=filename)

    directory = Path(directory)
    destination = directory / filename
    logger.info("Saving IP addresses to %s", destination)

    temp_path: Path | None = None
    count = 0
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=directory,
            prefix=f".{filename}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            for ip in ips:
                handle.write(f"{ip}\n")
                count += 1
            handle.flush()
            os.fsync(handle.fileno())

        os.chmod(temp_path, file_mode)
        os.replace(temp_path, destination)
        temp_path = None
    except OSError as e:
        msg = f"Failed to write {destination}: {e}"
        raise WriteError(msg, path=str(destination)) from e
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)

    log_success(logger, "File %s saved", filename)
    logger.info("Total IP addresses in %s: %d", filename, count)
    return count
