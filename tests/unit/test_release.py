"""
发行版本与下载地址单元测试
"""

import pytest

from tomcatup.config.schema import ProductModel
from tomcatup.upgrade.release import DIST_BASE_URL, ReleaseVersion, build_release_urls


class TestReleaseVersion:
    """ReleaseVersion 测试"""

    def test_names(self):
        """测试目录名与归档名"""
        release = ReleaseVersion("apache-tomcat", 8, 5, 40)
        assert release.version == "8.5.40"
        assert release.dirname == "apache-tomcat-8.5.40"
        assert release.filename == "apache-tomcat-8.5.40.tar.gz"

    def test_from_product(self):
        """测试由产品配置生成"""
        release = ReleaseVersion.from_product(ProductModel(major=9, minor=0), 10)
        assert release.version == "9.0.10"

    @pytest.mark.parametrize("patch", [-1, "40", True, 1.5])
    def test_invalid_patch(self, patch):
        """测试非法补丁号"""
        with pytest.raises(ValueError):
            ReleaseVersion("apache-tomcat", 8, 5, patch)


class TestBuildReleaseURLs:
    """build_release_urls 测试"""

    def test_archive_and_checksum_urls(self):
        """测试 8.5.40 的地址"""
        urls = build_release_urls(ReleaseVersion("apache-tomcat", 8, 5, 40))
        assert urls.archive_url == (
            "https://archive.apache.org/dist/tomcat/tomcat-8/v8.5.40/bin/apache-tomcat-8.5.40.tar.gz"
        )
        assert urls.checksum_url == urls.archive_url + ".sha1"

    def test_canonical_host(self):
        """测试默认固定使用官方发行主机"""
        urls = build_release_urls(ReleaseVersion("apache-tomcat", 9, 0, 1))
        assert urls.archive_url.startswith(DIST_BASE_URL + "/tomcat-9/")

    def test_custom_base_trailing_slash(self):
        urls = build_release_urls(ReleaseVersion("apache-tomcat", 8, 5, 1), base_url="http://localhost/dist/")
        assert urls.archive_url == "http://localhost/dist/tomcat-8/v8.5.1/bin/apache-tomcat-8.5.1.tar.gz"
