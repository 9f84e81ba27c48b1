"""Tests for database and file imports."""

import gzip
import io
import tarfile
import zipfile
from unittest.mock import MagicMock, patch

import pytest

from localsite.core.exceptions import ImportAssetError
from localsite.core.importer import (
    DIRECTORY,
    SQL_GZ,
    TAR_GZ,
    Importer,
    extract_archive,
    validate_asset,
)
from localsite.models.config import ProjectConfig
from localsite.models.topology import ExecResult


@pytest.fixture
def project(tmp_path):
    approot = tmp_path / "site"
    approot.mkdir()
    return ProjectConfig(name="sample", type="drupal8", approot=str(approot))


@pytest.fixture
def runtime():
    mock = MagicMock()
    mock.exec.return_value = ExecResult(exit_code=0)
    return mock


class TestValidateAsset:
    """Test cases for validate_asset."""

    def test_kinds(self, tmp_path):
        """Test classification of supported assets."""
        dump = tmp_path / "dump.sql.gz"
        dump.write_bytes(b"")
        archive = tmp_path / "files.tgz"
        archive.write_bytes(b"")

        assert validate_asset(str(dump)) == (dump, SQL_GZ)
        assert validate_asset(str(archive))[1] == TAR_GZ
        assert validate_asset(str(tmp_path))[1] == DIRECTORY

    def test_missing_file(self, tmp_path):
        """Test that a missing path is rejected."""
        with pytest.raises(ImportAssetError, match="does not exist"):
            validate_asset(str(tmp_path / "nothing.sql"))

    def test_unsupported_type(self, tmp_path):
        """Test that unknown extensions are rejected."""
        path = tmp_path / "dump.rar"
        path.write_bytes(b"")

        with pytest.raises(ImportAssetError, match="not a supported import type"):
            validate_asset(str(path))

    def test_expands_home(self, tmp_path, monkeypatch):
        """Test that ~ is expanded before checking the path."""
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / "dump.sql").write_text("")

        assert validate_asset("~/dump.sql")[0] == tmp_path / "dump.sql"


class TestExtractArchive:
    """Test cases for extract_archive."""

    def test_rejects_path_traversal(self, tmp_path):
        """Test that members escaping the destination are refused."""
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../escape.txt", "x")

        with pytest.raises(ImportAssetError, match="outside"):
            extract_archive(archive, "zip", tmp_path / "out")
        assert not (tmp_path / "escape.txt").exists()

    def test_corrupt_archive(self, tmp_path):
        """Test that a corrupt archive is reported as an import error."""
        archive = tmp_path / "broken.zip"
        archive.write_bytes(b"not a zip")

        with pytest.raises(ImportAssetError, match="unable to extract"):
            extract_archive(archive, "zip", tmp_path / "out")


class TestImportDb:
    """Test cases for Importer.import_db."""

    def test_sql_gz(self, tmp_path, project, runtime, global_dir):
        """Test that a gzipped dump is staged as db.sql and imported."""
        dump = tmp_path / "dump.sql.gz"
        with gzip.open(dump, "wb") as f:
            f.write(b"CREATE TABLE t (id int);")
        importer = Importer(runtime, global_dir)

        assert importer.stage_db(project, str(dump)) == ["db.sql"]
        assert (global_dir.import_dir("sample") / "db.sql").read_bytes() == b"CREATE TABLE t (id int);"

    def test_tar_with_extract_path(self, tmp_path, project, runtime, global_dir):
        """Test importing only the SQL under a directory inside an archive."""
        archive = tmp_path / "backup.tar.gz"
        with tarfile.open(archive, "w:gz") as tf:
            for name in ("data/one.sql", "data/two.sql", "other/skip.sql"):
                payload = b"SELECT 1;"
                info = tarfile.TarInfo(name)
                info.size = len(payload)
                tf.addfile(info, io.BytesIO(payload))
        importer = Importer(runtime, global_dir)

        imported = importer.import_db(project, str(archive), extract_path="data")

        assert imported == ["extracted/data/one.sql", "extracted/data/two.sql"]
        commands = [c.args[2] for c in runtime.exec.call_args_list]
        assert "DROP DATABASE IF EXISTS db" in commands[0]
        assert commands[1].endswith("< /db/import/extracted/data/one.sql")
        assert list(global_dir.import_dir("sample").iterdir()) == []

    def test_member_names_are_shell_quoted(self, tmp_path, project, runtime, global_dir):
        """Test that a quote in an archived file name cannot break out of the command."""
        archive = tmp_path / "backup.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("it's; rm -rf.sql", "SELECT 1;")

        Importer(runtime, global_dir).import_db(project, str(archive))

        command = runtime.exec.call_args_list[1].args[2]
        assert command.endswith("< '/db/import/extracted/it'\"'\"'s; rm -rf.sql'")

    def test_archive_without_sql(self, tmp_path, project, runtime, global_dir):
        """Test that an archive with no SQL files is rejected."""
        archive = tmp_path / "empty.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("readme.txt", "hello")

        with pytest.raises(ImportAssetError, match="no .sql files"):
            Importer(runtime, global_dir).import_db(project, str(archive))
        runtime.exec.assert_not_called()

    def test_mysql_failure(self, tmp_path, project, runtime, global_dir):
        """Test that a mysql error surfaces as an import error."""
        dump = tmp_path / "dump.sql"
        dump.write_text("garbage")
        runtime.exec.return_value = ExecResult(exit_code=1, stderr="ERROR 1064 (42000)")

        with pytest.raises(ImportAssetError, match="ERROR 1064"):
            Importer(runtime, global_dir).import_db(project, str(dump))


class TestImportFiles:
    """Test cases for Importer.import_files."""

    def test_replaces_upload_dir(self, tmp_path, project, runtime, global_dir, registry):
        """Test that a directory replaces the existing upload directory."""
        source = tmp_path / "files"
        source.mkdir()
        (source / "new.jpg").write_text("new")
        dest = project.docroot_path / "sites/default/files"
        dest.mkdir(parents=True)
        (dest / "old.jpg").write_text("old")

        result = Importer(runtime, global_dir).import_files(project, registry.get("drupal8"), str(source))

        assert result == dest
        assert (dest / "new.jpg").read_text() == "new"
        assert not (dest / "old.jpg").exists()

    def test_unsupported_for_generic(self, tmp_path, runtime, global_dir, registry):
        """Test that the generic type has nowhere to import files to."""
        config = ProjectConfig(name="plain", approot=str(tmp_path))

        with pytest.raises(ImportAssetError, match="not supported"):
            Importer(runtime, global_dir).import_files(config, registry.get("generic"), str(tmp_path))

    @pytest.mark.parametrize("inner", ["", "gallery"])
    def test_rejects_source_inside_upload_dir(self, project, runtime, global_dir, registry, inner):
        """Test that importing the upload directory into itself leaves it untouched."""
        dest = project.docroot_path / "sites/default/files"
        (dest / "gallery").mkdir(parents=True)
        (dest / "photo.jpg").write_text("photo")

        with pytest.raises(ImportAssetError, match="inside the upload directory"):
            Importer(runtime, global_dir).import_files(project, registry.get("drupal8"), str(dest / inner))

        assert (dest / "photo.jpg").read_text() == "photo"

    def test_failed_copy_keeps_upload_dir(self, tmp_path, project, runtime, global_dir, registry):
        """Test that a copy error is reported and the existing files survive."""
        source = tmp_path / "files"
        source.mkdir()
        (source / "new.jpg").write_text("new")
        dest = project.docroot_path / "sites/default/files"
        dest.mkdir(parents=True)
        (dest / "old.jpg").write_text("old")

        with patch("localsite.core.importer.shutil.copytree", side_effect=OSError("disk full")):
            with pytest.raises(ImportAssetError, match="disk full"):
                Importer(runtime, global_dir).import_files(project, registry.get("drupal8"), str(source))

        assert (dest / "old.jpg").read_text() == "old"
        assert [p.name for p in dest.parent.iterdir()] == ["files"]
