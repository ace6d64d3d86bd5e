"""
配置迁移器单元测试

测试覆盖复制、复制后摘要比对、截断检测以及源文件检查。
"""

import os
from unittest.mock import patch

import pytest

from tomcatup.upgrade.checksum import digest_file
from tomcatup.upgrade.migrator import ConfigMigrator, ensure_regular_file
from tomcatup.upgrade.upgrade_context import IntegrityError, NotRegularFileError


CONFIG_FILES = ("logging.properties", "server.xml", "web.xml")


@pytest.fixture
def conf_dirs(tmp_path):
    """新旧两个配置目录，内容各不相同"""
    source = tmp_path / "new" / "conf"
    destination = tmp_path / "old" / "conf"
    source.mkdir(parents=True)
    destination.mkdir(parents=True)
    for name in CONFIG_FILES:
        (source / name).write_bytes(f"new {name}\n".encode() * 500)
        (destination / name).write_bytes(f"old {name}\n".encode())
    return source, destination


class TestEnsureRegularFile:
    """源文件检查测试"""

    def test_regular_file(self, tmp_path):
        path = tmp_path / "server.xml"
        path.write_text("<Server/>")
        ensure_regular_file(path)

    def test_missing(self, tmp_path):
        """测试文件不存在"""
        with pytest.raises(NotRegularFileError) as exc_info:
            ensure_regular_file(tmp_path / "server.xml")
        assert exc_info.value.path == tmp_path / "server.xml"

    def test_directory(self, tmp_path):
        """测试路径是目录"""
        with pytest.raises(NotRegularFileError):
            ensure_regular_file(tmp_path)


class TestConfigMigrator:
    """ConfigMigrator 测试"""

    def test_migrate_all(self, conf_dirs):
        """测试全部迁移成功后摘要一致"""
        source, destination = conf_dirs

        results = ConfigMigrator().migrate(source, destination, CONFIG_FILES)

        assert [r.name for r in results] == list(CONFIG_FILES)
        for result in results:
            assert result.success
            assert digest_file(result.source) == digest_file(result.destination)
            assert result.source_digest == result.destination_digest

    def test_destination_created_when_missing(self, conf_dirs):
        """测试目标文件不存在时新建"""
        source, destination = conf_dirs
        (destination / "web.xml").unlink()

        ConfigMigrator().migrate(source, destination, ["web.xml"])

        assert (destination / "web.xml").read_bytes() == (source / "web.xml").read_bytes()

    def test_missing_source_aborts(self, conf_dirs):
        """测试源文件缺失时终止，后续文件保持不变"""
        source, destination = conf_dirs
        (source / "server.xml").unlink()

        with pytest.raises(NotRegularFileError):
            ConfigMigrator().migrate(source, destination, CONFIG_FILES)

        assert (destination / "logging.properties").read_bytes() == (source / "logging.properties").read_bytes()
        assert (destination / "web.xml").read_bytes() == b"old web.xml\n"

    def test_source_is_directory(self, conf_dirs):
        source, destination = conf_dirs
        (source / "server.xml").unlink()
        (source / "server.xml").mkdir()

        with pytest.raises(NotRegularFileError):
            ConfigMigrator().migrate(source, destination, ["server.xml"])

    def test_truncated_write(self, conf_dirs):
        """测试目标写入被截断时报告完整性错误并终止"""
        source, destination = conf_dirs

        def truncated_copy(src, dst, length=0):
            dst.write(src.read()[:-10])

        with patch("tomcatup.upgrade.migrator.shutil.copyfileobj", side_effect=truncated_copy):
            with pytest.raises(IntegrityError) as exc_info:
                ConfigMigrator().migrate(source, destination, CONFIG_FILES)

        error = exc_info.value
        assert error.result is not None
        assert error.result.name == "logging.properties"
        assert not error.result.success
        assert error.result.source_digest != error.result.destination_digest
        assert error.completed == []
        # 第一个失败后不再处理其余文件
        assert (destination / "server.xml").read_bytes() == b"old server.xml\n"

    def test_unwritable_destination(self, conf_dirs):
        """测试目标目录不存在时抛出 OSError"""
        source, destination = conf_dirs
        with pytest.raises(OSError):
            ConfigMigrator().migrate(source, destination / "missing", ["server.xml"])

    def test_copy_file_syncs(self, conf_dirs):
        """测试复制后调用 fsync 落盘"""
        source, destination = conf_dirs
        with patch("tomcatup.upgrade.migrator.os.fsync", wraps=os.fsync) as fsync:
            ConfigMigrator().copy_file(source / "web.xml", destination / "web.xml")
        fsync.assert_called_once()
