"""
skybuild - 在本机或远程构建主机上构建并部署Go程序
"""
__version__ = '1.0.0'

from .backends import ExecutionBackend, LocalBackend, RemoteBackend, create_backend
from .builder import Builder, build, deploy
from .config import BuildConfig, Config, DeployConfig, load_config
from .deployer import Deployer
from .errors import (
    CheckoutError,
    CommandError,
    ConfigurationError,
    ConnectionError,
    SkyBuildError,
    TransferError,
    ValidationError,
)
from .package import BuildContext, validate_package
from .scm import GitScm, Scm, create_scm, register_scm

__all__ = [
    'ExecutionBackend',
    'LocalBackend',
    'RemoteBackend',
    'create_backend',
    'Builder',
    'build',
    'deploy',
    'BuildConfig',
    'Config',
    'DeployConfig',
    'load_config',
    'Deployer',
    'CheckoutError',
    'CommandError',
    'ConfigurationError',
    'ConnectionError',
    'SkyBuildError',
    'TransferError',
    'ValidationError',
    'BuildContext',
    'validate_package',
    'GitScm',
    'Scm',
    'create_scm',
    'register_scm',
]
