"""
发行版本与下载地址

由结构化的版本字段（产品、主/次/补丁版本）生成归档名、目录名以及
归档与校验文件的下载地址。地址固定指向 Apache 的官方发行主机，
不使用镜像，以保证校验和来源可信。
"""

from dataclasses import dataclass

from ..config.schema import ProductModel

DIST_HOST = "archive.apache.org"
DIST_BASE_URL = f"https://{DIST_HOST}/dist/tomcat"
ARCHIVE_SUFFIX = ".tar.gz"
CHECKSUM_SUFFIX = ".sha1"


@dataclass(frozen=True)
class ReleaseVersion:
    """一个具体的发行版本"""
    product: str
    major: int
    minor: int
    patch: int

    def __post_init__(self):
        for name in ("major", "minor", "patch"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"版本号字段 {name} 必须是非负整数: {value!r}")

    @classmethod
    def from_product(cls, product: ProductModel, patch: int) -> "ReleaseVersion":
        return cls(product.name, product.major, product.minor, patch)

    @property
    def version(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def dirname(self) -> str:
        """解压后的根目录名，如 apache-tomcat-8.5.40"""
        return f"{self.product}-{self.version}"

    @property
    def filename(self) -> str:
        return f"{self.dirname}{ARCHIVE_SUFFIX}"


@dataclass(frozen=True)
class ReleaseURLs:
    archive_url: str
    checksum_url: str


def build_release_urls(release: ReleaseVersion, base_url: str = DIST_BASE_URL) -> ReleaseURLs:
    """生成归档与校验文件地址

    例如 8.5.40 对应
    https://archive.apache.org/dist/tomcat/tomcat-8/v8.5.40/bin/apache-tomcat-8.5.40.tar.gz
    """
    archive_url = (
        f"{base_url.rstrip('/')}/tomcat-{release.major}/v{release.version}/bin/{release.filename}"
    )
    return ReleaseURLs(
        archive_url=archive_url,
        checksum_url=f"{archive_url}{CHECKSUM_SUFFIX}",
    )
