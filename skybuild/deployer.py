"""
部署器

将构建产物 {Jail}/bin/{basename(AppPath)} 复制到 {DeployPath}/{BinaryName}。
目前只支持部署到本机：
- 构建主机也是本机：直接复制文件
- 构建主机是远程主机：通过SFTP从构建主机拉取
"""
import logging
import os
import posixpath
import shutil
from typing import Iterable

import paramiko

from .backends import ExecutionBackend
from .config import BuildConfig, DeployConfig
from .errors import TransferError
from .utils import is_host_local, split_host_port

logger = logging.getLogger(__name__)


class Deployer:
    """构建产物部署器"""

    def __init__(self, build_config: BuildConfig, deploy_config: DeployConfig, backend: ExecutionBackend):
        self.build_config = build_config
        self.deploy_config = deploy_config
        self.backend = backend

    @property
    def artifact_path(self) -> str:
        """构建主机上的产物路径"""
        return posixpath.join(
            self.build_config.jail, 'bin', posixpath.basename(self.build_config.app_path.rstrip('/'))
        )

    @property
    def target_path(self) -> str:
        """部署目标路径"""
        return os.path.join(self.deploy_config.deploy_path, self.deploy_config.binary_name)

    def deploy(self, hosts: Iterable[str]):
        """
        按顺序部署到各主机

        任一主机失败立即中止，已部署的主机不回滚
        """
        build_is_local = is_host_local(self.build_config.host)

        for host in hosts:
            if not is_host_local(host):
                # 已知限制：只支持部署到本机，远程目标主机直接拒绝
                raise TransferError(f"不支持部署到远程主机: {host}")

            if build_is_local:
                self._copy_local()
            else:
                self._pull_remote()

            logger.info(f"部署完成: {host or 'localhost'} -> {self.target_path}")

    def _copy_local(self):
        logger.info("复制本地构建产物")
        try:
            shutil.copy2(self.artifact_path, self.target_path)
        except OSError as e:
            raise TransferError(f"复制 {self.artifact_path} 到 {self.target_path} 失败: {e}")

    def _pull_remote(self):
        host, port = split_host_port(self.build_config.host)
        source = f"{self.build_config.user}@{host}:{self.artifact_path}"
        logger.info(f"从构建主机拉取产物: {source} (端口 {port})")

        try:
            sftp = self.backend.open_sftp()
        except (paramiko.SSHException, OSError) as e:
            raise TransferError(f"无法打开到构建主机的SFTP通道 {host}:{port}: {e}")

        try:
            sftp.get(self.artifact_path, self.target_path)
        except (paramiko.SSHException, OSError) as e:
            raise TransferError(f"拉取 {source} 到 {self.target_path} 失败: {e}")
        finally:
            sftp.close()

        try:
            os.chmod(self.target_path, 0o755)
        except OSError as e:
            raise TransferError(f"设置执行权限失败 {self.target_path}: {e}")
