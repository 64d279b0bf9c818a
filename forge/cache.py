"""Incremental build cache for Forge.

The cache persists a manifest of the previous build: a digest of the effective
configuration, a digest of the combined template tree, and for every source file
its content digest and output location. It answers whether a source, the
configuration or the templates changed since that build.

The manifest is an explicit value: loaded once when a build starts, mutated in
memory, and written once when the build succeeds. A corrupt manifest is discarded
rather than failing the build.

Key classes:
- FileRecord: Per-source entry of the manifest.
- BuildManifest: The persisted manifest.
- IncrementalCache: Loads, queries and saves a manifest.

Key functions:
- hash_bytes: Digest raw bytes.
- hash_config: Digest a configuration in canonical form.
- hash_templates: Digest template directories in path-sorted order.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from . import __version__

logger = logging.getLogger(__name__)

CACHE_DIR = ".forge_cache"
MANIFEST_FILE = "manifest.json"
DIGEST_SIZE = 16


def _hasher():
    return hashlib.blake2b(digest_size=DIGEST_SIZE)


def hash_bytes(data: bytes) -> str:
    """Return the hex digest of raw bytes."""
    hasher = _hasher()
    hasher.update(data)
    return hasher.hexdigest()


def hash_config(config: Any) -> str:
    """Return the digest of a configuration's canonical JSON form.

    Args:
        config: A SiteConfig (anything with ``to_dict``) or a plain mapping.
    """
    data = config.to_dict() if hasattr(config, "to_dict") else config
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hash_bytes(canonical.encode("utf-8"))


def hash_templates(directories: Iterable[Path]) -> str:
    """Digest every file under the given directories.

    Directories are visited in the order given (theme first, then site) and the
    files inside each in sorted path order, so the result does not depend on
    file-system enumeration order. Missing directories are skipped.
    """
    hasher = _hasher()
    for directory in directories:
        if not directory.is_dir():
            continue
        for path in sorted(p for p in directory.rglob("*") if p.is_file()):
            hasher.update(path.relative_to(directory).as_posix().encode("utf-8"))
            hasher.update(b"\0")
            hasher.update(path.read_bytes())
    return hasher.hexdigest()


@dataclass
class FileRecord:
    content_hash: str
    output_path: str
    template_deps: list[str] = field(default_factory=list)


@dataclass
class BuildManifest:
    """Persisted state of the previous build."""

    version: str = __version__
    last_build: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    config_hash: str = ""
    template_hash: str = ""
    file_hashes: dict[str, FileRecord] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "last_build": self.last_build.isoformat(),
            "config_hash": self.config_hash,
            "template_hash": self.template_hash,
            "file_hashes": {
                path: {
                    "content_hash": record.content_hash,
                    "output_path": record.output_path,
                    "template_deps": list(record.template_deps),
                }
                for path, record in sorted(self.file_hashes.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BuildManifest:
        """Build a manifest from parsed JSON.

        Raises:
            ValueError: If the data does not have the manifest's shape.
        """
        if not isinstance(data, Mapping):
            raise ValueError("manifest must be an object")
        raw_files = data.get("file_hashes", {})
        if not isinstance(raw_files, Mapping):
            raise ValueError("file_hashes must be an object")
        files = {}
        for path, record in raw_files.items():
            if not isinstance(record, Mapping):
                raise ValueError(f"invalid record for {path}")
            files[str(path)] = FileRecord(
                content_hash=str(record["content_hash"]),
                output_path=str(record.get("output_path", "")),
                template_deps=[str(dep) for dep in record.get("template_deps", [])],
            )
        try:
            last_build = datetime.fromisoformat(str(data["last_build"]))
        except (KeyError, TypeError) as exc:
            raise ValueError("missing last_build") from exc
        return cls(
            version=str(data.get("version", "")),
            last_build=last_build,
            config_hash=str(data.get("config_hash", "")),
            template_hash=str(data.get("template_hash", "")),
            file_hashes=files,
        )


class IncrementalCache:
    """Staleness decisions backed by a persisted BuildManifest.

    When ``force`` is set every query reports a change, so a forced build treats
    everything as dirty regardless of what was loaded.

    Attributes:
        cache_dir: Directory holding the manifest.
        manifest: In-memory manifest.
        force: Whether every query reports a change.
    """

    def __init__(self, cache_dir: Path, manifest: BuildManifest, force: bool = False):
        self.cache_dir = cache_dir
        self.manifest = manifest
        self.force = force

    @property
    def manifest_path(self) -> Path:
        return self.cache_dir / MANIFEST_FILE

    @classmethod
    def load(cls, root: Path, force: bool = False) -> IncrementalCache:
        """Load the manifest for a site, or start from an empty one.

        Args:
            root: Site root directory.
            force: Ignore any persisted manifest.

        Returns:
            IncrementalCache; its manifest is empty if forced, missing or corrupt.
        """
        cache_dir = root / CACHE_DIR
        manifest_path = cache_dir / MANIFEST_FILE
        manifest = BuildManifest()
        if not force and manifest_path.exists():
            try:
                data = json.loads(manifest_path.read_text(encoding="utf-8"))
                manifest = BuildManifest.from_dict(data)
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Discarding unreadable build cache %s: %s", manifest_path, exc)
                manifest = BuildManifest()
        return cls(cache_dir, manifest, force)

    @property
    def file_hashes(self) -> dict[str, FileRecord]:
        return self.manifest.file_hashes

    def is_dirty(self, source_id: str, content_hash: str) -> bool:
        if self.force:
            return True
        record = self.manifest.file_hashes.get(source_id)
        return record is None or record.content_hash != content_hash

    def dirty_files(self, hashes: Mapping[str, str]) -> list[str]:
        """Return the source ids in ``hashes`` that are dirty, sorted."""
        return sorted(source for source, digest in hashes.items() if self.is_dirty(source, digest))

    def config_changed(self, config_hash: str) -> bool:
        return self.force or self.manifest.config_hash != config_hash

    def templates_changed(self, template_hash: str) -> bool:
        return self.force or self.manifest.template_hash != template_hash

    def update_file(self, source_id: str, content_hash: str, output_path: Path | str) -> None:
        self.manifest.file_hashes[source_id] = FileRecord(
            content_hash=content_hash,
            output_path=str(output_path),
        )

    def prune(self, keep: Iterable[str]) -> list[str]:
        """Drop records for sources not in ``keep``.

        Returns:
            The dropped source ids, sorted.
        """
        keep = set(keep)
        dropped = sorted(source for source in self.manifest.file_hashes if source not in keep)
        for source in dropped:
            del self.manifest.file_hashes[source]
        return dropped

    def set_config_hash(self, config_hash: str) -> None:
        self.manifest.config_hash = config_hash

    def set_template_hash(self, template_hash: str) -> None:
        self.manifest.template_hash = template_hash

    def save(self) -> Path:
        """Stamp the build time and atomically write the manifest.

        Returns:
            Path of the written manifest.
        """
        self.manifest.last_build = datetime.now(timezone.utc)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self.manifest.to_dict(), indent=2)
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=".manifest-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.manifest_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return self.manifest_path
