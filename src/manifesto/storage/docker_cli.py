"""
Docker CLI collaborator.

Resolves image digests and stores single-file data images by shelling out
to the ``docker`` command. This is the only place manifesto starts
external processes; the registry client itself never does.
"""
from __future__ import annotations

import logging
import re
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from .oci_errors import ImageResolveError

logger = logging.getLogger(__name__)

__all__ = ["DockerCLI"]

_DIGEST_RE = re.compile(r"sha256:[a-f0-9]{64}")

# Path of the data file inside a data image
_DATA_PATH = "/data"
_TEMP_CONTAINER = "manifesto.temp"

# docker pull stderr fragments meaning the image does not exist
_ABSENT_IMAGE_MARKERS = ("not found", "manifest unknown", "does not exist", "no such image")


class DockerCLI:
    """
    ImageResolver and TaggedDataStore backed by the docker command.

    Data images are built ``FROM scratch`` with the payload at /data.
    """

    def __init__(self, docker: str = "docker", verbose: bool = False, timeout_s: float = 300.0):
        self.docker = docker
        self.verbose = verbose
        self.timeout_s = timeout_s

    def resolve_digest(self, image_name: str) -> str:
        """Pull image_name and return its repository digest."""
        # Make sure we have an up-to-date version of this image
        self._run(["pull", image_name], check=False)
        result = self._run(["inspect", image_name, "-f", "{{.RepoDigests}}"], check=False)
        if result.returncode != 0:
            raise ImageResolveError(f"Image '{image_name}' not found: {result.stderr.strip()}")

        digest = _extract_digest(result.stdout)
        if not digest:
            raise ImageResolveError(f"Digest not found in {result.stdout.strip()!r}")
        return digest

    def read_data(self, image_name: str) -> Optional[bytes]:
        """
        Pull a data image and return its /data contents.

        Returns None only when the registry reports the image as absent.

        Raises:
            ImageResolveError: If the pull fails for another reason, such as
                an unreachable daemon, or the copy fails
        """
        pulled = self._run(["pull", image_name], check=False)
        if pulled.returncode != 0:
            if _is_absent(pulled.stderr):
                logger.debug(f"No image {image_name}")
                return None
            raise ImageResolveError(f"Could not pull {image_name}: {pulled.stderr.strip()}")

        with tempfile.TemporaryDirectory(prefix="manifesto.") as tmp:
            out = Path(tmp) / "data"
            self._run(["create", f"--name={_TEMP_CONTAINER}", image_name, "x"])
            try:
                self._run(["cp", f"{_TEMP_CONTAINER}:{_DATA_PATH}", str(out)])
            finally:
                self._run(["rm", _TEMP_CONTAINER], check=False)
            return out.read_bytes()

    def write_data(self, image_name: str, data: bytes) -> str:
        """Build a scratch image holding data at /data, push it, and return its digest."""
        with tempfile.TemporaryDirectory(prefix="manifesto.") as tmp:
            context = Path(tmp)
            (context / "data").write_bytes(data)
            (context / "Dockerfile").write_text(f"FROM scratch\nADD data {_DATA_PATH}\n")
            self._run(["build", "-t", image_name, str(context)])

        self._run(["push", image_name])
        return self.resolve_digest(image_name)

    def _run(self, args: List[str], *, check: bool = True) -> subprocess.CompletedProcess[str]:
        command = [self.docker, *args]
        logger.debug(f"Running {' '.join(command)}")
        try:
            result = subprocess.run(
                command,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
            )
        except FileNotFoundError as e:
            raise ImageResolveError(
                f"{self.docker} not found. Install Docker and ensure it is available in PATH."
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ImageResolveError(f"{' '.join(command)} timed out after {self.timeout_s:.0f}s") from e

        if self.verbose and result.stdout:
            logger.debug(result.stdout.rstrip())
        if check and result.returncode != 0:
            raise ImageResolveError(
                f"{' '.join(command)} failed (exit={result.returncode}): {result.stderr.strip()}"
            )
        return result


def _is_absent(stderr: Optional[str]) -> bool:
    message = (stderr or "").lower()
    return any(marker in message for marker in _ABSENT_IMAGE_MARKERS)


def _extract_digest(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    match = _DIGEST_RE.search(text)
    if not match:
        return None
    return match.group(0)
