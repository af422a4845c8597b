"""
构建流水线

按顺序执行：环境检查 → 检出代码 → 设置环境变量 → 前置命令 → 拉取依赖 →
编译 → 测试 → 后置命令。任一阶段失败立即中止，不重试、不回滚
"""
import logging
import posixpath
import shlex
from typing import Iterable, List, Optional

from .backends import ExecutionBackend, create_backend
from .config import Config, load_config
from .deployer import Deployer
from .errors import CheckoutError, CommandError, ValidationError
from .package import BuildContext, validate_package
from .scm import Scm, create_scm

logger = logging.getLogger(__name__)

# Skynet框架自测项目（相对Jail）
SKYNET_PROJECT = 'src/github.com/skynetservices/skynet2'


class Builder:
    """构建器"""

    def __init__(self, config: Config, backend: ExecutionBackend):
        self.config = config
        self.build_config = config.build
        self.deploy_config = config.deploy
        self.backend = backend
        self.scm: Optional[Scm] = None
        self.project_path: Optional[str] = None

    @property
    def app_dir(self) -> str:
        """待构建程序所在目录（项目路径 + AppPath）"""
        if self.project_path is None:
            raise CheckoutError("项目路径尚未确定，请先检出代码")
        return posixpath.join(self.project_path, self.build_config.app_path)

    def perform_build(self):
        """执行完整构建流水线"""
        self.setup_scm()
        self.validate_build_environment()
        self.update_code()
        self.configure_environment()
        self.run_commands(self.build_config.pre_build_commands, stage='pre_build')
        self.update_dependencies()
        self.build_project()

        if self.build_config.run_tests:
            self.run_tests()

        self.run_commands(self.build_config.post_build_commands, stage='post_build')

    def setup_scm(self):
        self.scm = create_scm(self.build_config.repo_type)
        logger.debug(f"版本控制: {self.build_config.repo_type}")

    def validate_build_environment(self):
        """
        检查构建环境

        四项检查全部执行，任一失败都会记录，最后统一报错
        """
        logger.info("检查构建环境")
        go_root = self.build_config.go_root
        probes = [
            ('ls ' + shlex.quote(self.build_config.jail), "找不到Jail目录"),
            ('ls ' + shlex.quote(go_root), "找不到GOROOT目录"),
            ('ls ' + shlex.quote(posixpath.join(go_root, 'bin', 'go')), "找不到Go命令"),
            ('which ' + self.scm.binary_name(), f"找不到{self.build_config.repo_type}命令"),
        ]

        failures: List[str] = []
        for command, message in probes:
            success, output = self.backend.execute(command)
            if not success:
                failure = f"{message}: {output.strip()}"
                logger.error(failure)
                failures.append(failure)

        if failures:
            raise ValidationError("构建环境检查失败:\n" + '\n'.join(failures), stage='validate_environment')

    def update_code(self):
        """检出项目代码"""
        import_path = self.scm.import_path_from_repo(self.build_config.app_repo)
        self.project_path = posixpath.join(self.build_config.jail, 'src', import_path)

        success, _ = self.backend.execute('ls ' + shlex.quote(self.project_path))
        if not success:
            logger.info("创建项目目录")
            success, output = self.backend.execute('mkdir -p ' + shlex.quote(self.project_path))
            if not success:
                raise CheckoutError(f"无法创建项目目录 {self.project_path}: {output.strip()}")
            self._echo(output)

        self.scm.set_backend(self.backend)
        self.scm.checkout(self.build_config.app_repo, self.build_config.repo_branch, self.project_path)

    def configure_environment(self):
        self.backend.set_env('GOPATH', self.build_config.gopath)
        self.backend.set_env('GOROOT', self.build_config.go_root)
        self.backend.set_env('CGO_CFLAGS', self.build_config.cgo_cflags)
        self.backend.set_env('CGO_LDFLAGS', self.build_config.cgo_ldflags)

    def run_commands(self, commands: Iterable[str], stage: str = 'command'):
        """顺序执行命令列表，第一条失败即中止"""
        for command in commands:
            self._exec(command, stage=stage, message="执行命令失败")

    def update_dependencies(self):
        self.get_package_dependencies(self.app_dir)

    def get_package_dependencies(self, path: str):
        flags = ['-d']
        if self.build_config.update_packages:
            flags.append('-u')

        logger.info("拉取依赖")
        self._exec(f"go get {' '.join(flags)} ./...", path, stage='dependencies', message="拉取依赖失败")

    def build_project(self):
        flags = '-v'
        if self.build_config.build_all_packages:
            flags += ' -a'

        logger.info("编译项目")
        self._exec('go install ' + flags, self.app_dir, stage='build', message="编译失败")

    def run_tests(self):
        logger.info("运行测试")
        self._exec('go test', self.app_dir, stage='test', message="测试失败")

        if self.build_config.test_skynet:
            self.test_skynet()

    def test_skynet(self):
        logger.info("运行Skynet测试")
        path = posixpath.join(self.build_config.jail, SKYNET_PROJECT)
        self.get_package_dependencies(path)
        self._exec('go test ./...', path, stage='test', message="Skynet测试失败")

    def deploy(self, hosts: Iterable[str]):
        Deployer(self.build_config, self.deploy_config, self.backend).deploy(hosts)

    def _exec(self, command: str, working_dir: str = None, stage: str = 'command', message: str = "命令失败") -> str:
        if working_dir:
            success, output = self.backend.execute_at(command, working_dir)
        else:
            success, output = self.backend.execute(command)

        self._echo(output)

        if not success:
            raise CommandError(f"{message}: {command}\n{output}", command=command, output=output, stage=stage)
        return output

    @staticmethod
    def _echo(output: str):
        if output:
            print(output, flush=True)


def new_builder(config_path: str = None, context: BuildContext = None) -> Builder:
    """
    加载配置、校验包并创建执行后端

    校验在建立连接之前进行，失败时不会产生任何副作用
    """
    config = load_config(config_path)
    validate_package(context or BuildContext())

    build_config = config.build
    backend = create_backend(
        build_config.host,
        build_config.user,
        password=build_config.password,
        private_key_file=build_config.private_key_file
    )
    return Builder(config, backend)


def build(config_path: str = None, context: BuildContext = None):
    """完整构建"""
    builder = new_builder(config_path, context)
    with builder.backend:
        builder.perform_build()


def deploy(config_path: str = None, context: BuildContext = None):
    """仅部署到本机，不重新构建"""
    builder = new_builder(config_path, context)
    with builder.backend:
        builder.deploy(['localhost'])
