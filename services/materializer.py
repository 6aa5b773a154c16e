"""
Job materializer: turns a PrintJob into files in the hot folder.

Each physical sheet becomes ``<stem>.jpg`` (plus ``<stem>.job`` when the
print agent expects a descriptor). Every file is written to a ``.part`` name
first and renamed into place, so the agent never picks up half a file. The
descriptor is published before its image.

The materializer only writes to disk. It never creates the hot folder,
because the folder is owned by the DNP hot folder software.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional

from core.exceptions import ArtifactWriteError, ConfigurationError, HotFolderMissingError
from models.artifact import JobArtifact
from models.print_job import PrintJob
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_NAME_TEMPLATE = "{job_id}_{index:03d}"
IMAGE_SUFFIX = ".jpg"
DESCRIPTOR_SUFFIX = ".job"
PARTIAL_SUFFIX = ".part"


class JobMaterializer:
    """
    Writes job artifacts into a watched directory.

    Works for both submission strategies: call it once with every index
    (batch) or once per index (sequential).

    Attributes:
        write_descriptor: Whether a ``.job`` sidecar accompanies each image
        name_template: ``str.format`` template for artifact file stems
    """

    def __init__(
        self,
        write_descriptor: bool = False,
        name_template: str = DEFAULT_NAME_TEMPLATE,
    ):
        try:
            name_template.format(job_id="x", index=0, size="4x6")
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigurationError(f"Invalid artifact name template {name_template!r}: {e}")

        self.write_descriptor = write_descriptor
        self.name_template = name_template

    def artifact_stem(self, job: PrintJob, index: int) -> str:
        """File name without suffix for sheet ``index`` of ``job``."""
        return self.name_template.format(
            job_id=job.job_id,
            index=index,
            size=job.paper_size.name,
        )

    def materialize(
        self,
        job: PrintJob,
        watch_dir: Path,
        indexes: Optional[Iterable[int]] = None,
    ) -> List[JobArtifact]:
        """
        Write the artifacts for ``job`` into ``watch_dir``.

        Args:
            job: Job to materialize
            watch_dir: Existing hot folder directory
            indexes: Physical sheet indexes to write (default: all of them)

        Returns:
            The written artifacts, all PENDING

        Raises:
            HotFolderMissingError: If watch_dir does not exist
            ArtifactWriteError: If a file could not be written. Files written
                by this call are removed first; sheets the agent already took
                are counted in the error's ``consumed``
        """
        watch_dir = Path(watch_dir)
        if not watch_dir.is_dir():
            raise HotFolderMissingError(str(watch_dir), job.paper_size.name)

        if indexes is None:
            indexes = range(job.physical_job_count)

        written: List[JobArtifact] = []
        for index in indexes:
            try:
                written.append(self._write_artifact(job, watch_dir, index))
            except OSError as e:
                logger.error(f"Job {job.short_id}: failed writing sheet {index}: {e}")
                consumed = self._discard(written)
                raise ArtifactWriteError(
                    str(watch_dir / self.artifact_stem(job, index)),
                    str(e),
                    job_id=job.job_id,
                    consumed=consumed,
                )

        logger.debug(f"Job {job.short_id}: wrote {len(written)} artifacts to {watch_dir}")
        return written

    def _write_artifact(self, job: PrintJob, watch_dir: Path, index: int) -> JobArtifact:
        stem = self.artifact_stem(job, index)
        image_path = watch_dir / f"{stem}{IMAGE_SUFFIX}"
        artifact = JobArtifact(job_id=job.job_id, index=index, image_path=image_path)

        # The descriptor is published before its image; the agent acts on the image.
        if self.write_descriptor:
            descriptor_path = watch_dir / f"{stem}{DESCRIPTOR_SUFFIX}"
            _publish(descriptor_path, self._descriptor_text(job, image_path).encode("utf-8"))
            artifact.descriptor_path = descriptor_path

        try:
            _publish(image_path, job.image_bytes)
        except OSError:
            if artifact.descriptor_path is not None:
                _unlink_quietly(artifact.descriptor_path)
            raise

        return artifact

    @staticmethod
    def _descriptor_text(job: PrintJob, image_path: Path) -> str:
        size = job.paper_size
        lines = [
            f"printer={job.printer_name or ''}",
            f"size={size.name}",
            f"media={size.media}",
            f"cut={1 if size.cut_enabled else 0}",
            "copies=1",
            f"image={image_path.name}",
        ]
        return "\n".join(lines) + "\n"

    def _discard(self, artifacts: List[JobArtifact]) -> int:
        """Remove written artifacts; returns how many the agent had already taken."""
        consumed = 0
        for artifact in artifacts:
            image_was_there = _unlink_quietly(artifact.image_path)
            if artifact.descriptor_path is not None:
                _unlink_quietly(artifact.descriptor_path)
            if image_was_there:
                artifact.mark_removed()
            else:
                artifact.mark_cleaned()
                consumed += 1
        return consumed


def _publish(path: Path, data: bytes) -> None:
    partial_path = path.with_name(path.name + PARTIAL_SUFFIX)
    try:
        with open(partial_path, "wb") as f:
            f.write(data)
        os.replace(partial_path, path)
    except OSError:
        _unlink_quietly(partial_path)
        raise


def _unlink_quietly(path: Path) -> bool:
    """Delete ``path``; False when it was already gone."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")
    return True
