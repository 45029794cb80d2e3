from __future__ import annotations

import os
import tempfile
import uuid
from typing import List, Optional, Tuple

from studydoc.errors import CleanupWarning
from studydoc.log import get_logger

logger = get_logger(__name__)


class BufferManager:
    """Per-job temporary paths under a shared temp directory.

    Every job gets its own random stem, so concurrent jobs never share a
    file even when they start within the same clock tick. Debug mode keeps
    the files on disk; release mode removes them on cleanup().
    """

    def __init__(self, base_dir: Optional[str] = None, prefix: str = "studydoc", debug: bool = False) -> None:
        self.debug = bool(debug)
        self.base_dir = os.path.abspath(base_dir or tempfile.gettempdir())
        self.prefix = prefix
        os.makedirs(self.base_dir, exist_ok=True)

    def job_paths(self, input_suffix: str = ".docx", output_suffix: str = ".pdf") -> Tuple[str, str]:
        """Return (input_path, output_path) sharing one unique stem.

        The shared stem matters: LibreOffice names its output after the input file.
        """
        stem = f"{self.prefix}-{uuid.uuid4().hex}"
        return (
            os.path.join(self.base_dir, stem + input_suffix),
            os.path.join(self.base_dir, stem + output_suffix),
        )

    def cleanup(self, *paths: str) -> List[CleanupWarning]:
        """Best-effort removal of the given files; failures are logged and returned."""
        warnings: List[CleanupWarning] = []
        if self.debug:
            logger.debug("Debug buffer: keeping %s", ", ".join(paths))
            return warnings
        for path in paths:
            try:
                os.unlink(path)
            except FileNotFoundError:
                continue
            except OSError as e:
                warning = CleanupWarning(path, str(e))
                logger.warning(str(warning))
                warnings.append(warning)
        return warnings
