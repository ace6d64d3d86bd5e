"""
单元测试公共夹具

构造与发行版布局一致的 tar.gz 归档，以及模拟 HTTP 会话。
"""

import io
import tarfile
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple
from unittest.mock import MagicMock

import pytest

from tomcatup.upgrade.checksum import digest_file
from tomcatup.utils.logging import close_logger


# (名称, 内容, 权限)；内容为 None 表示目录
Entry = Tuple[str, Optional[bytes], int]

TOMCAT_ROOT = "apache-tomcat-8.5.40"

TOMCAT_ENTRIES = [
    (f"{TOMCAT_ROOT}", None, 0o755),
    (f"{TOMCAT_ROOT}/LICENSE", b"Apache License\n", 0o644),
    (f"{TOMCAT_ROOT}/NOTICE", b"Apache Tomcat\n", 0o644),
    (f"{TOMCAT_ROOT}/bin", None, 0o755),
    (f"{TOMCAT_ROOT}/bin/catalina.sh", b"#!/bin/sh\necho catalina\n", 0o750),
    (f"{TOMCAT_ROOT}/conf", None, 0o700),
    (f"{TOMCAT_ROOT}/conf/server.xml", b"<Server port=\"8005\"/>\n", 0o600),
    (f"{TOMCAT_ROOT}/conf/web.xml", b"<web-app/>\n", 0o600),
    (f"{TOMCAT_ROOT}/conf/logging.properties", b"handlers = java.util.logging.ConsoleHandler\n", 0o600),
    (f"{TOMCAT_ROOT}/webapps", None, 0o755),
    (f"{TOMCAT_ROOT}/webapps/ROOT", None, 0o755),
    (f"{TOMCAT_ROOT}/webapps/ROOT/index.jsp", b"<html>root</html>\n", 0o644),
    (f"{TOMCAT_ROOT}/webapps/examples", None, 0o755),
    (f"{TOMCAT_ROOT}/webapps/examples/index.jsp", b"<html>examples</html>\n", 0o644),
]


def write_tarball(path: Path, entries: Iterable[Entry]) -> Path:
    """按给定顺序写入 tar.gz 归档"""
    with tarfile.open(path, "w:gz") as tar:
        for name, data, mode in entries:
            info = tarfile.TarInfo(name)
            info.mode = mode
            if data is None:
                info.type = tarfile.DIRTYPE
                tar.addfile(info)
            else:
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
    return path


def make_response(status_code: int = 200, reason: str = "OK", headers: Optional[Dict[str, str]] = None,
                  text: str = "", chunks: Iterable[bytes] = ()) -> MagicMock:
    """模拟 requests.Response，可直接用作 with 语句的上下文"""
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.headers = headers or {}
    response.text = text
    response.iter_content.return_value = list(chunks)
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


def make_session(archive: bytes, checksum_body: str, status_code: int = 200) -> MagicMock:
    """模拟发行主机：.sha1 返回校验文件，其余返回归档内容"""
    session = MagicMock()
    reason = "OK" if status_code == 200 else "Not Found"

    session.head.return_value = make_response(
        status_code=status_code,
        reason=reason,
        headers={"Content-Length": str(len(archive)), "Last-Modified": "Mon, 01 Apr 2019 12:00:00 GMT"},
    )

    def fake_get(url, stream=False, timeout=None):
        if url.endswith(".sha1"):
            return make_response(status_code=status_code, reason=reason, text=checksum_body)
        return make_response(status_code=status_code, reason=reason, chunks=[archive[:100], archive[100:]])

    session.get.side_effect = fake_get
    return session


@pytest.fixture
def tomcat_tarball(tmp_path):
    """apache-tomcat-8.5.40.tar.gz 归档（位于独立的源目录）"""
    source_dir = tmp_path / "dist"
    source_dir.mkdir()
    return write_tarball(source_dir / f"{TOMCAT_ROOT}.tar.gz", TOMCAT_ENTRIES)


@pytest.fixture
def tomcat_checksum(tomcat_tarball):
    """与归档匹配的 .sha1 文件内容"""
    return f"{digest_file(tomcat_tarball)} *{tomcat_tarball.name}\n"


@pytest.fixture(autouse=True)
def reset_logger():
    """每个测试结束后关闭日志文件并恢复默认输出级别"""
    yield
    close_logger()
