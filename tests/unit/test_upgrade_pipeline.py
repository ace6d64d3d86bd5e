"""
升级管道单元测试

使用模拟的发行主机端到端执行升级流程。
"""

import os
from unittest.mock import MagicMock

import pytest

from tomcatup.config.schema import UpgradeConfig
from tomcatup.upgrade.downloader import Downloader
from tomcatup.upgrade.steps.upgrade_step import UpgradeStep
from tomcatup.upgrade.upgrade_context import TransferError, UpgradeContext
from tomcatup.upgrade.upgrade_pipeline import UpgradePipeline
from tomcatup.upgrade.upgrader import Upgrader
from tomcatup.utils.logging import close_logger, set_log_file

from conftest import TOMCAT_ROOT, make_session


class MockUpgradeStep(UpgradeStep):
    """模拟升级步骤"""

    def __init__(self, name="mock", fail=False):
        super().__init__(name, "模拟步骤")
        self.fail = fail
        self.execute_context = None

    def execute(self, context):
        self.execute_context = context
        if self.fail:
            raise TransferError("模拟失败")


@pytest.fixture
def layout(tmp_path):
    """工作目录中有旧版本安装以及指向它的发布链接"""
    work = tmp_path / "opt"
    old = work / "apache-tomcat-8.5.39"
    (old / "conf").mkdir(parents=True)
    for name in ("logging.properties", "server.xml", "web.xml"):
        (old / "conf" / name).write_text(f"old {name}\n")
    os.symlink("apache-tomcat-8.5.39", work / "tomcat8")
    return work


def make_config(work, **sections):
    data = {
        "install": {"dir": str(work / "tomcat8"), "work_dir": str(work)},
        "ownership": {"uid": os.getuid(), "gid": os.getgid()},
        "links": {"extra": [{"target": "/var/log/tomcat8", "link": "logs-archive"}]},
    }
    data.update(sections)
    return UpgradeConfig.from_dict(data)


class TestUpgradePipeline:
    """UpgradePipeline 测试"""

    def test_default_steps(self, layout):
        """测试默认步骤顺序"""
        pipeline = UpgradePipeline(make_config(layout), downloader=Downloader(session=MagicMock()))
        assert [step.name for step in pipeline.get_steps()] == [
            "check", "resolve", "checksum", "download", "decompress",
            "unpack", "migrate", "permission", "ownership", "link",
        ]

    def test_add_remove_steps(self, layout):
        pipeline = UpgradePipeline(make_config(layout), downloader=Downloader(session=MagicMock()))
        step = MockUpgradeStep()
        pipeline.add_step(step, position=0)
        assert pipeline.get_steps()[0] is step

        pipeline.remove_step("mock")
        assert step not in pipeline.get_steps()

    def test_failure_stops_pipeline(self, layout):
        """测试任一步骤失败时后续步骤不再执行"""
        pipeline = UpgradePipeline(make_config(layout), downloader=Downloader(session=MagicMock()))
        failing = MockUpgradeStep("first", fail=True)
        later = MockUpgradeStep("second")
        pipeline._steps = [failing, later]

        with pytest.raises(TransferError):
            pipeline.execute(40)

        assert isinstance(failing.execute_context, UpgradeContext)
        assert later.execute_context is None

    def test_full_upgrade(self, layout, tomcat_tarball, tomcat_checksum):
        """测试完整升级流程"""
        session = make_session(tomcat_tarball.read_bytes(), tomcat_checksum)
        pipeline = UpgradePipeline(make_config(layout), downloader=Downloader(session=session))

        context = pipeline.execute(40)

        new_root = layout / TOMCAT_ROOT
        assert context.install_dir == new_root
        assert context.downloaded
        assert (layout / f"{TOMCAT_ROOT}.tar.gz").exists()
        assert (layout / f"{TOMCAT_ROOT}.tar").exists()

        # 新版本的配置覆盖旧安装中的配置
        old_conf = layout / "apache-tomcat-8.5.39" / "conf"
        assert (old_conf / "server.xml").read_bytes() == (new_root / "conf" / "server.xml").read_bytes()
        assert [m.name for m in context.migrations] == ["logging.properties", "server.xml", "web.xml"]

        # 排除项未解开
        assert not (new_root / "webapps" / "examples").exists()
        assert not (new_root / "webapps" / "ROOT").exists()
        assert (new_root / "conf" / "server.xml").exists()

        # 配置目录补齐组权限
        assert os.stat(new_root / "conf").st_mode & 0o070 == 0o070

        # 发布链接切换，旧链接保留为 tomcat8~
        assert (layout / "tomcat8").resolve() == new_root.resolve()
        assert os.readlink(layout / "tomcat8~") == "apache-tomcat-8.5.39"
        assert os.readlink(new_root / "logs-archive") == "/var/log/tomcat8"
        assert context.stats['owner_failed'] == 0

    def test_existing_to_new_direction(self, layout, tomcat_tarball, tomcat_checksum):
        """测试把现有配置复制到新版本"""
        session = make_session(tomcat_tarball.read_bytes(), tomcat_checksum)
        config = make_config(layout, migrate={"direction": "existing-to-new"})

        UpgradePipeline(config, downloader=Downloader(session=session)).execute(40)

        new_conf = layout / TOMCAT_ROOT / "conf"
        assert (new_conf / "server.xml").read_text() == "old server.xml\n"

    def test_local_archive_reused(self, layout, tomcat_tarball, tomcat_checksum):
        """测试工作目录中已有一致的归档时只获取校验文件"""
        (layout / tomcat_tarball.name).write_bytes(tomcat_tarball.read_bytes())
        session = make_session(tomcat_tarball.read_bytes(), tomcat_checksum)

        context = UpgradePipeline(make_config(layout), downloader=Downloader(session=session)).execute(40)

        assert not context.downloaded
        session.head.assert_not_called()
        assert session.get.call_count == 1
        assert session.get.call_args[0][0].endswith(".sha1")


class TestUpgrader:
    """Upgrader 测试"""

    def test_checksum_mismatch_stops_before_extraction(self, layout, tomcat_tarball):
        """测试 8.5.40 下载后校验和不一致时不进行解压"""
        session = make_session(tomcat_tarball.read_bytes(), "f" * 40 + " *apache-tomcat-8.5.40.tar.gz")

        result = Upgrader(make_config(layout), downloader=Downloader(session=session)).upgrade(40)

        assert not result.success
        assert result.error_type == "TransferError"
        assert "期望" in result.error
        assert not (layout / f"{TOMCAT_ROOT}.tar").exists()
        assert not (layout / TOMCAT_ROOT).exists()
        assert os.readlink(layout / "tomcat8") == "apache-tomcat-8.5.39"

    def test_missing_install_dir(self, tmp_path):
        """测试现有安装目录不存在时在网络访问前失败"""
        session = MagicMock()
        config = UpgradeConfig.from_dict({"install": {"dir": str(tmp_path / "missing"), "work_dir": str(tmp_path)}})

        result = Upgrader(config, downloader=Downloader(session=session)).upgrade(40)

        assert not result.success
        assert result.error_type == "FileNotFoundError"
        assert "--dir" in result.error
        session.get.assert_not_called()

    def test_http_not_found(self, layout):
        """测试服务器返回 404 时提示下载页"""
        session = make_session(b"", "", status_code=404)
        result = Upgrader(make_config(layout), downloader=Downloader(
            session=session, download_page="https://tomcat.apache.org/download-80.cgi",
        )).upgrade(999)

        assert not result.success
        assert "404" in result.error
        assert "download-80.cgi" in result.error

    def test_success_result(self, layout, tomcat_tarball, tomcat_checksum):
        session = make_session(tomcat_tarball.read_bytes(), tomcat_checksum)

        result = Upgrader(make_config(layout), downloader=Downloader(session=session)).upgrade(40)

        assert result.success
        assert result.version == "8.5.40"
        assert result.install_dir == layout / TOMCAT_ROOT
        assert len(result.migrations) == 3
        assert result.elapsed is not None

    def test_failure_reported_once(self, layout, tmp_path):
        """测试步骤失败只以调试级别记录，错误输出留给命令行"""
        log_file = tmp_path / "upgrade.log"
        set_log_file(log_file)
        upgrader = Upgrader(make_config(layout), downloader=Downloader(session=MagicMock()))
        upgrader.get_pipeline()._steps = [MockUpgradeStep("first", fail=True)]

        result = upgrader.upgrade(40)
        close_logger()

        assert not result.success
        assert result.error == "模拟失败"
        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert not [line for line in lines if "[ERROR]" in line]
        assert [line for line in lines if "[DEBUG]" in line and "模拟失败" in line]
