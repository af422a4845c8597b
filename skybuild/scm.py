"""
版本控制提供者

负责从仓库地址推导Go导入路径，并通过执行后端检出/更新代码。
提供者按配置中的 RepoType 注册和查找，默认只内置 git
"""
import logging
import shlex
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type
from urllib.parse import urlparse

from .backends import ExecutionBackend
from .errors import CheckoutError, ConfigurationError

logger = logging.getLogger(__name__)


class Scm(ABC):
    """版本控制提供者基类"""

    def __init__(self):
        self.backend: Optional[ExecutionBackend] = None

    @abstractmethod
    def binary_name(self) -> str:
        """版本控制命令名（用于环境检查）"""

    @abstractmethod
    def import_path_from_repo(self, repo_url: str) -> str:
        """从仓库地址推导导入路径"""

    @abstractmethod
    def checkout(self, repo_url: str, branch: str, destination: str):
        """检出代码到目标目录，已存在则更新"""

    def set_backend(self, backend: ExecutionBackend):
        self.backend = backend

    def _run(self, command: str, working_dir: str = None) -> str:
        if self.backend is None:
            raise CheckoutError("未设置执行后端")

        if working_dir:
            success, output = self.backend.execute_at(command, working_dir)
        else:
            success, output = self.backend.execute(command)

        if output:
            print(output, flush=True)

        if not success:
            raise CheckoutError(f"命令执行失败: {command}\n{output}")
        return output


class GitScm(Scm):
    """Git提供者"""

    def binary_name(self) -> str:
        return 'git'

    def import_path_from_repo(self, repo_url: str) -> str:
        """
        推导导入路径

        支持以下格式：
            https://github.com/org/repo.git -> github.com/org/repo
            ssh://git@github.com:22/org/repo -> github.com/org/repo
            git@github.com:org/repo.git     -> github.com/org/repo
        """
        url = repo_url.strip()

        if '://' in url:
            parsed = urlparse(url)
            host = parsed.hostname or ''
            path = parsed.path
        elif ':' in url:
            # scp格式: [user@]host:path
            host_part, path = url.split(':', 1)
            host = host_part.rsplit('@', 1)[-1]
        else:
            raise CheckoutError(f"无法识别的仓库地址: {repo_url}")

        path = path.strip('/')
        if path.endswith('.git'):
            path = path[:-len('.git')]

        if not host or not path:
            raise CheckoutError(f"无法从仓库地址推导导入路径: {repo_url}")

        return f"{host}/{path}"

    def checkout(self, repo_url: str, branch: str, destination: str):
        if self.backend is None:
            raise CheckoutError("未设置执行后端")

        exists, _ = self.backend.execute('ls ' + shlex.quote(destination.rstrip('/') + '/.git'))

        if exists:
            logger.info(f"更新代码: {destination} ({branch or '默认分支'})")
            self._run('git fetch origin', destination)
            if branch:
                self._run('git checkout ' + shlex.quote(branch), destination)
                self._run('git pull --ff-only origin ' + shlex.quote(branch), destination)
            else:
                self._run('git pull --ff-only', destination)
            return

        logger.info(f"克隆代码: {repo_url} -> {destination}")
        self._run('mkdir -p ' + shlex.quote(destination))

        command = 'git clone'
        if branch:
            command += ' -b ' + shlex.quote(branch)
        command += f" {shlex.quote(repo_url)} {shlex.quote(destination)}"
        self._run(command)


SCM_PROVIDERS: Dict[str, Type[Scm]] = {
    'git': GitScm,
}


def register_scm(kind: str, provider: Type[Scm]):
    """注册版本控制提供者"""
    SCM_PROVIDERS[kind] = provider


def create_scm(kind: str) -> Scm:
    """按 RepoType 创建版本控制提供者"""
    provider = SCM_PROVIDERS.get(kind)
    if provider is None:
        raise ConfigurationError(f"不支持的RepoType: {kind!r}", stage='setup_scm')
    return provider()
