import logging
import os
from typing import Dict, List

from ...errors import ArtifactWriteError

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"


def _stage(path: str, tmp_path: str, content: str) -> None:
    if os.path.isdir(path):
        raise IsADirectoryError(f"Target {path} is a directory")

    with open(tmp_path, 'w', encoding='utf-8') as f:
        f.write(content)
        f.flush()
        os.fsync(f.fileno())


def write_artifacts(output_dir: str, files: Dict[str, str]) -> List[str]:
    """Persist every rendered artifact. All content must already be rendered and validated.

    Every file is first written to a temporary sibling. Only when all of them
    are staged are they moved into place with os.replace, so a failure while
    staging leaves the previous run's files untouched. Leftover temporary
    files are removed either way.

    Args:
        output_dir (str): Target directory.
        files (Dict[str, str]): Relative file name -> file content.

    Returns:
        List[str]: Paths written, in order.

    Raises:
        ArtifactWriteError: If any file cannot be staged or moved into place.
    """
    staged = []
    try:
        try:
            if not os.path.exists(output_dir):
                os.makedirs(output_dir, exist_ok=True)
            for name, content in files.items():
                path = os.path.join(output_dir, name)
                tmp_path = f"{path}{TMP_SUFFIX}"
                staged.append((tmp_path, path))
                _stage(path, tmp_path, content)

            written = []
            for tmp_path, path in staged:
                os.replace(tmp_path, path)
                written.append(path)
                logger.info(f"Wrote {path}")
            return written
        except OSError as e:
            raise ArtifactWriteError(f"Could not write artifacts to {output_dir}: {e}") from e
    finally:
        for tmp_path, _ in staged:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
