"""Database and user-file imports."""

import gzip
import logging
import shlex
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import List, Optional, Tuple

from ..models.config import ProjectConfig
from ..services.exceptions import DockerServiceError
from ..utils.path_finder import PathFinder
from .constants import DB_IMPORT_MOUNT, DB_NAME, DB_ROOT_PASSWORD, DB_SERVICE, DB_USER
from .exceptions import ImportAssetError

logger = logging.getLogger(__name__)

# Asset kinds understood by validate_asset
SQL = "sql"
SQL_GZ = "sql.gz"
ZIP = "zip"
TAR = "tar"
TAR_GZ = "tar.gz"
DIRECTORY = "directory"
ARCHIVE_KINDS = (ZIP, TAR, TAR_GZ)

SQL_STAGING_NAME = "db.sql"


def asset_kind(path: Path) -> Optional[str]:
    """Classify an asset by its name, or None if the type is not supported."""
    if path.is_dir():
        return DIRECTORY
    name = path.name.lower()
    if name.endswith(".sql.gz"):
        return SQL_GZ
    if name.endswith(".tar.gz") or name.endswith(".tgz"):
        return TAR_GZ
    if name.endswith(".tar"):
        return TAR
    if name.endswith(".zip"):
        return ZIP
    if name.endswith(".sql"):
        return SQL
    return None


def validate_asset(src: str) -> Tuple[Path, str]:
    """Resolve an import source, expanding ``~``, and classify it.

    Returns:
        Tuple of the absolute path and its kind

    Raises:
        ImportAssetError: If the path does not exist or has an unsupported type
    """
    if not src:
        raise ImportAssetError("no import source was given")
    path = PathFinder.resolve(src)
    if not path.exists():
        raise ImportAssetError(f"the file or directory {path} does not exist")
    kind = asset_kind(path)
    if kind is None:
        raise ImportAssetError(
            f"{path.name} is not a supported import type; "
            f"use a .sql, .sql.gz, .zip, .tar, .tar.gz or .tgz file, or a directory"
        )
    return path, kind


def _check_member(dest: Path, name: str) -> None:
    target = (dest / name).resolve()
    if target != dest and dest not in target.parents:
        raise ImportAssetError(f"archive member {name} would extract outside {dest}")


def extract_archive(path: Path, kind: str, dest: Path) -> Path:
    """Extract a zip or tar archive into a directory.

    Raises:
        ImportAssetError: If the archive is corrupt or contains unsafe paths
    """
    dest = dest.resolve()
    dest.mkdir(parents=True, exist_ok=True)
    try:
        if kind == ZIP:
            with zipfile.ZipFile(path) as archive:
                for name in archive.namelist():
                    _check_member(dest, name)
                archive.extractall(dest)
        else:
            with tarfile.open(path, "r:gz" if kind == TAR_GZ else "r:") as archive:
                members = []
                for member in archive.getmembers():
                    if member.issym() or member.islnk() or member.isdev():
                        logger.debug("Skipping link or device %s in %s", member.name, path.name)
                        continue
                    _check_member(dest, member.name)
                    members.append(member)
                archive.extractall(dest, members=members)
    except (zipfile.BadZipFile, tarfile.TarError, OSError, EOFError) as e:
        raise ImportAssetError(f"unable to extract {path}: {e}") from e
    return dest


def _subpath(root: Path, extract_path: Optional[str]) -> Path:
    if not extract_path:
        return root
    target = root / extract_path.strip("/")
    if not target.exists():
        raise ImportAssetError(f"the path {extract_path} was not found in the archive")
    return target


def _swap_dir(new: Path, dest: Path, scratch: Path) -> None:
    # Both paths share a parent, so each rename is atomic
    previous = scratch / "previous"
    if dest.exists():
        dest.rename(previous)
    try:
        new.rename(dest)
    except OSError:
        if previous.exists():
            previous.rename(dest)
        raise


def _clear_dir(path: Path) -> None:
    # The directory itself is bind-mounted into the db container, so only its contents go
    path.mkdir(parents=True, exist_ok=True)
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


class Importer:
    """Loads database dumps and user files into a project."""

    def __init__(self, runtime, global_dir):
        self.runtime = runtime
        self.global_dir = global_dir

    def stage_db(self, config: ProjectConfig, src: str, extract_path: Optional[str] = None) -> List[str]:
        """Copy SQL from an asset into the project's import directory.

        Returns:
            Names of staged SQL files, in import order

        Raises:
            ImportAssetError: If no SQL could be found in the asset
        """
        path, kind = validate_asset(src)
        staging = self.global_dir.import_dir(config.name)
        _clear_dir(staging)
        staging = staging.resolve()

        if kind == SQL:
            shutil.copyfile(path, staging / SQL_STAGING_NAME)
            return [SQL_STAGING_NAME]
        if kind == SQL_GZ:
            try:
                with gzip.open(path, "rb") as source, open(staging / SQL_STAGING_NAME, "wb") as target:
                    shutil.copyfileobj(source, target)
            except (OSError, EOFError) as e:
                raise ImportAssetError(f"unable to decompress {path}: {e}") from e
            return [SQL_STAGING_NAME]
        if kind == DIRECTORY:
            raise ImportAssetError(f"{path} is a directory; a database import needs a SQL file or archive")

        extracted = extract_archive(path, kind, staging / "extracted")
        root = _subpath(extracted, extract_path)
        found = sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() == ".sql")
        if not found:
            raise ImportAssetError(f"no .sql files were found in {path}")
        return [str(p.relative_to(staging)) for p in found]

    def import_db(self, config: ProjectConfig, src: str, extract_path: Optional[str] = None) -> List[str]:
        """Replace the project database with the contents of a dump.

        Args:
            config: Project to import into; its db service must be running
            src: Path to a .sql, .sql.gz or archive containing .sql files
            extract_path: Directory inside an archive to import from

        Returns:
            Names of the SQL files that were imported

        Raises:
            ImportAssetError: If the asset is unusable or mysql reports an error
        """
        staged = self.stage_db(config, src, extract_path)
        reset = (
            f"mysql -uroot -p{DB_ROOT_PASSWORD} -e "
            f"'DROP DATABASE IF EXISTS {DB_NAME}; CREATE DATABASE {DB_NAME}; "
            f"GRANT ALL ON {DB_NAME}.* TO \"{DB_USER}\"@\"%\";'"
        )
        self._mysql(config, reset)
        for name in staged:
            logger.info("Importing %s into %s", name, config.name)
            source = shlex.quote(f"{DB_IMPORT_MOUNT}/{name}")
            self._mysql(config, f"mysql -uroot -p{DB_ROOT_PASSWORD} {DB_NAME} < {source}")
        _clear_dir(self.global_dir.import_dir(config.name))
        return staged

    def _mysql(self, config: ProjectConfig, command: str) -> None:
        try:
            result = self.runtime.exec(config.name, DB_SERVICE, command)
        except DockerServiceError as e:
            raise ImportAssetError(f"database import failed: {e}") from e
        if not result.ok:
            raise ImportAssetError(f"database import failed: {result.stderr.strip() or result.exit_code}")

    def import_files(self, config: ProjectConfig, handler, src: str,
                     extract_path: Optional[str] = None) -> Path:
        """Replace the project's upload directory with a directory or archive.

        Returns:
            The upload directory that was populated

        Raises:
            ImportAssetError: If the type has no upload directory or the asset is unusable
        """
        if not handler.upload_dir:
            raise ImportAssetError(f"importing files is not supported for the {config.type.value} type")
        path, kind = validate_asset(src)
        if kind not in ARCHIVE_KINDS and kind != DIRECTORY:
            raise ImportAssetError(f"{path.name} is not a directory or a .zip, .tar or .tar.gz archive")

        dest = config.docroot_path / handler.upload_dir
        real_source, real_dest = path.resolve(), dest.resolve()
        if kind == DIRECTORY and (real_source == real_dest or real_dest in real_source.parents):
            raise ImportAssetError(f"{path} is inside the upload directory {dest}; import from another location")

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            scratch = Path(tempfile.mkdtemp(prefix=f".{dest.name}-", dir=str(dest.parent)))
        except OSError as e:
            raise ImportAssetError(f"unable to prepare {dest}: {e}") from e
        try:
            with tempfile.TemporaryDirectory(prefix="localsite-files-") as tmp:
                source = path
                if kind != DIRECTORY:
                    source = _subpath(extract_archive(path, kind, Path(tmp)), extract_path)
                shutil.copytree(source, scratch / dest.name)
            _swap_dir(scratch / dest.name, dest, scratch)
        except OSError as e:
            raise ImportAssetError(f"unable to import files into {dest}: {e}") from e
        finally:
            shutil.rmtree(scratch, ignore_errors=True)
        logger.info("Imported files from %s to %s", path, dest)
        return dest
