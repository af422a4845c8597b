"""
构建配置

配置文件为JSON格式，包含 Build 和 Deploy 两个顶层段，启动时读取一次
"""
import json
import logging
import os
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = './build.cfg'

_MISSING = object()


def _get_str(data: Dict[str, Any], key: str, default: Optional[str] = ''):
    """读取字符串字段；default为None时允许null"""
    value = data.get(key, _MISSING)
    if value is _MISSING or (value is None and default is None):
        return default
    if not isinstance(value, str):
        raise ConfigurationError(f"配置项 {key} 必须是字符串，实际为: {value!r}")
    return value


def _get_bool(data: Dict[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise ConfigurationError(f"配置项 {key} 必须是布尔值，实际为: {value!r}")
    return value


def _get_str_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"配置项 {key} 必须是字符串列表，实际为: {value!r}")
    return list(value)


class BuildConfig:
    """构建配置（Build段）"""

    def __init__(self):
        self.host: str = ''
        self.user: str = ''
        self.jail: str = ''
        self.cgo_cflags: str = ''
        self.cgo_ldflags: str = ''
        self.go_root: str = ''
        self.go_path: str = ''

        self.app_repo: str = ''
        self.app_path: str = ''
        self.repo_type: str = ''
        self.repo_branch: str = ''

        self.update_packages: bool = False
        self.build_all_packages: bool = False
        self.run_tests: bool = False
        self.test_skynet: bool = False

        self.pre_build_commands: List[str] = []
        self.post_build_commands: List[str] = []

        # 远程会话认证（可选）
        self.password: Optional[str] = None
        self.private_key_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            'Host': self.host,
            'User': self.user,
            'Jail': self.jail,
            'CGO_CFLAGS': self.cgo_cflags,
            'CGO_LDFLAGS': self.cgo_ldflags,
            'GoRoot': self.go_root,
            'GoPath': self.go_path,
            'AppRepo': self.app_repo,
            'AppPath': self.app_path,
            'RepoType': self.repo_type,
            'RepoBranch': self.repo_branch,
            'UpdatePackages': self.update_packages,
            'BuildAllPackages': self.build_all_packages,
            'RunTests': self.run_tests,
            'TestSkynet': self.test_skynet,
            'PreBuildCommands': list(self.pre_build_commands),
            'PostBuildCommands': list(self.post_build_commands),
            'Password': self.password,
            'PrivateKeyFile': self.private_key_file,
        }

    def from_dict(self, data: Dict[str, Any]):
        """从字典加载，字段类型不符时抛出 ConfigurationError"""
        self.host = _get_str(data, 'Host')
        self.user = _get_str(data, 'User')
        self.jail = _get_str(data, 'Jail')
        self.cgo_cflags = _get_str(data, 'CGO_CFLAGS')
        self.cgo_ldflags = _get_str(data, 'CGO_LDFLAGS')
        self.go_root = _get_str(data, 'GoRoot')
        self.go_path = _get_str(data, 'GoPath')
        self.app_repo = _get_str(data, 'AppRepo')
        self.app_path = _get_str(data, 'AppPath')
        self.repo_type = _get_str(data, 'RepoType')
        self.repo_branch = _get_str(data, 'RepoBranch')
        self.update_packages = _get_bool(data, 'UpdatePackages')
        self.build_all_packages = _get_bool(data, 'BuildAllPackages')
        self.run_tests = _get_bool(data, 'RunTests')
        self.test_skynet = _get_bool(data, 'TestSkynet')
        self.pre_build_commands = _get_str_list(data, 'PreBuildCommands')
        self.post_build_commands = _get_str_list(data, 'PostBuildCommands')
        self.password = _get_str(data, 'Password', None)
        self.private_key_file = _get_str(data, 'PrivateKeyFile', None)
        return self

    @property
    def gopath(self) -> str:
        """GOPATH：Jail，若配置了GoPath则追加在后"""
        if self.go_path:
            return self.jail + ':' + self.go_path
        return self.jail


class DeployConfig:
    """部署配置（Deploy段）"""

    def __init__(self):
        self.deploy_path: str = ''
        self.binary_name: str = ''

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            'DeployPath': self.deploy_path,
            'BinaryName': self.binary_name,
        }

    def from_dict(self, data: Dict[str, Any]):
        """从字典加载"""
        self.deploy_path = _get_str(data, 'DeployPath')
        self.binary_name = _get_str(data, 'BinaryName')
        return self


class Config:
    """完整配置"""

    def __init__(self, build: BuildConfig = None, deploy: DeployConfig = None):
        self.build = build or BuildConfig()
        self.deploy = deploy or DeployConfig()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Build': self.build.to_dict(),
            'Deploy': self.deploy.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        if not isinstance(data, dict):
            raise ConfigurationError("配置文件顶层必须是JSON对象")
        build = data.get('Build', {})
        deploy = data.get('Deploy', {})
        if not isinstance(build, dict) or not isinstance(deploy, dict):
            raise ConfigurationError("Build 和 Deploy 段必须是JSON对象")
        return cls(BuildConfig().from_dict(build), DeployConfig().from_dict(deploy))


def default_config_path() -> str:
    """默认配置文件路径，可通过 SKY_CONFIG 环境变量覆盖"""
    return os.environ.get('SKY_CONFIG') or DEFAULT_CONFIG_PATH


def load_config(config_path: Optional[str] = None) -> Config:
    """从文件加载配置"""
    if not config_path:
        config_path = default_config_path()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"读取配置文件失败: {config_path}: {e}")
    except ValueError as e:
        raise ConfigurationError(f"解析配置文件失败 {config_path}: {e}")

    logger.debug(f"配置文件已加载: {config_path}")
    return Config.from_dict(data)
