"""
Archiver - 7-Zip extraction

Thin wrapper around the 7-Zip command line. IGN distributes Admin Express as
.7z archives, which the standard library cannot read.
"""

import logging
import os
import stat
import subprocess
from pathlib import Path
from typing import Optional

from ..types import ExtractionError

logger = logging.getLogger(__name__)


class Archiver:
    """
    Extract archives with an external 7-Zip binary.

    The archive is extracted with the destination directory as working
    directory so relative entry paths land beneath it.
    """

    def __init__(self, binary: Optional[str], timeout_s: Optional[float] = None):
        """
        Args:
            binary: 7-Zip executable (7zz, 7z or 7za), None if not installed
            timeout_s: Optional timeout for one extraction
        """
        self.binary = binary
        self.timeout_s = timeout_s

    def _ensure_executable(self) -> None:
        """Set the execute bit on the binary when a packaged copy lacks it."""
        path = Path(self.binary)
        try:
            mode = path.stat().st_mode
            if not mode & stat.S_IXUSR:
                path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not adjust permissions of {path}: {e}")

    def build_args(self, archive: Path) -> list[str]:
        return [self.binary, "x", str(archive.resolve()), "-y"]

    def extract(self, archive: Path, dest_dir: Path) -> None:
        """
        Extract every entry of ``archive`` into ``dest_dir``.

        Raises:
            ExtractionError: If the binary is missing, times out or exits non-zero
        """
        if not self.binary:
            raise ExtractionError(archive, "no 7-Zip executable found (set ARCHIVER_BIN)")

        if os.sep in self.binary:
            self._ensure_executable()

        args = self.build_args(archive)
        logger.debug(f"Running: {' '.join(args)} (cwd={dest_dir})")

        try:
            subprocess.run(
                args,
                cwd=dest_dir,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=True,
                timeout=self.timeout_s,
            )
        except OSError as e:
            raise ExtractionError(archive, f"cannot run {self.binary}: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise ExtractionError(archive, f"timed out after {self.timeout_s}s") from e
        except subprocess.CalledProcessError as e:
            raise ExtractionError(
                archive, f"{self.binary} exited with code {e.returncode}", stderr=e.stderr
            ) from e
