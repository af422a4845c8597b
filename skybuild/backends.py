"""
命令执行后端

统一本地和远程两种方式执行命令：
- 本地方式：每次调用启动一个子进程，工作目录和环境变量按次传入
- 远程方式：启动时建立一个SSH会话，之后所有命令都通过该会话执行，
  通过 set_env 设置的环境变量在整个会话期间累积有效
"""
import logging
import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import paramiko

from .errors import ConfigurationError, ConnectionError
from .utils import is_host_local, split_host_port

logger = logging.getLogger(__name__)


class ExecutionBackend(ABC):
    """命令执行后端基类"""

    def __init__(self):
        self.env: Dict[str, str] = {}
        self.closed = False

    @abstractmethod
    def execute(self, command: str) -> Tuple[bool, str]:
        """
        执行命令

        Returns:
            tuple: (success: bool, output: str)
        """

    @abstractmethod
    def execute_at(self, command: str, working_dir: str) -> Tuple[bool, str]:
        """在指定目录下执行命令"""

    def set_env(self, name: str, value: str):
        """设置环境变量，对之后的所有命令生效"""
        logger.debug(f"设置环境变量: {name}={value}")
        self.env[name] = value

    def close(self):
        """释放资源（可重复调用）"""
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class LocalBackend(ExecutionBackend):
    """本地执行后端"""

    def execute(self, command: str) -> Tuple[bool, str]:
        return self._run(command, None)

    def execute_at(self, command: str, working_dir: str) -> Tuple[bool, str]:
        return self._run(command, working_dir)

    def _run(self, command: str, working_dir: Optional[str]) -> Tuple[bool, str]:
        logger.debug(f"本地执行命令: {command} (目录: {working_dir or '.'})")

        env = os.environ.copy()
        env.update(self.env)

        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=working_dir,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True
            )
        except OSError as e:
            logger.error(f"启动命令失败: {command}: {e}")
            return False, str(e)

        if result.returncode != 0:
            logger.debug(f"命令执行失败，退出码: {result.returncode}")
            return False, result.stdout

        return True, result.stdout


class RemoteBackend(ExecutionBackend):
    """远程执行后端（SSH）"""

    def __init__(self, host: str, user: str, password: str = None, private_key_file: str = None):
        super().__init__()
        if not isinstance(host, str):
            raise ConfigurationError(f"构建主机必须是字符串，实际为: {host!r}")
        self.host, port = split_host_port(host)
        if not self.host or not port.isdigit():
            raise ConfigurationError(f"无效的构建主机: {host!r}，格式应为 host[:port]")
        self.port = int(port)
        self.user = user
        self.password = password
        self.private_key_file = private_key_file
        self.client: Optional[paramiko.SSHClient] = None

    def connect(self):
        """建立SSH会话"""
        logger.info(f"连接构建主机: {self.user}@{self.host}:{self.port}")

        client = paramiko.SSHClient()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        kwargs = {
            'hostname': self.host,
            'port': self.port,
            'username': self.user,
        }
        if self.private_key_file:
            kwargs['key_filename'] = self.private_key_file
        if self.password:
            kwargs['password'] = self.password

        try:
            client.connect(**kwargs)
        except paramiko.AuthenticationException as e:
            client.close()
            raise ConnectionError(f"认证失败 {self.user}@{self.host}:{self.port}: {e}")
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise ConnectionError(f"无法连接 {self.host}:{self.port}: {e}")

        self.client = client
        logger.info("SSH会话已建立")

    def _prefix(self) -> str:
        exports = [f"export {name}={shlex.quote(value)}" for name, value in self.env.items()]
        if not exports:
            return ''
        return '; '.join(exports) + '; '

    def execute(self, command: str) -> Tuple[bool, str]:
        return self._run(self._prefix() + command)

    def execute_at(self, command: str, working_dir: str) -> Tuple[bool, str]:
        return self._run(f"{self._prefix()}cd {shlex.quote(working_dir)} && ( {command} )")

    def _run(self, command: str) -> Tuple[bool, str]:
        if self.client is None:
            raise ConnectionError(f"SSH会话未建立: {self.host}:{self.port}")

        logger.debug(f"远程执行命令: {command}")

        transport = self.client.get_transport()
        if transport is None or not transport.is_active():
            logger.error(f"SSH会话已断开: {self.host}:{self.port}")
            return False, f"SSH会话已断开: {self.host}:{self.port}"

        try:
            with transport.open_session() as channel:
                channel.set_combine_stderr(True)
                channel.exec_command(command)
                output = channel.makefile('rb').read().decode('utf-8', errors='replace')
                exit_status = channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            logger.error(f"远程执行命令失败: {command}: {e}")
            return False, str(e)

        if exit_status != 0:
            logger.debug(f"命令执行失败，退出码: {exit_status}")
            return False, output

        return True, output

    def open_sftp(self) -> paramiko.SFTPClient:
        """在当前会话上打开SFTP通道"""
        if self.client is None:
            raise ConnectionError(f"SSH会话未建立: {self.host}:{self.port}")
        return self.client.open_sftp()

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
            logger.debug("SSH会话已关闭")
        super().close()


def create_backend(host: str, user: str = '', password: str = None, private_key_file: str = None) -> ExecutionBackend:
    """
    根据主机选择执行后端

    本机（''、localhost、127.0.0.1）使用本地后端，其它主机建立SSH会话
    """
    if is_host_local(host):
        return LocalBackend()

    backend = RemoteBackend(host, user, password=password, private_key_file=private_key_file)
    backend.connect()
    return backend
