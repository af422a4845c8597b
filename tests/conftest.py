import json
from typing import List, Tuple

import pytest

from skybuild.backends import ExecutionBackend
from skybuild.config import Config

BASE_CONFIG = {
    'Build': {
        'Host': '',
        'User': 'builder',
        'Jail': '/j',
        'CGO_CFLAGS': '-I/usr/include',
        'CGO_LDFLAGS': '-L/usr/lib',
        'GoRoot': '/go',
        'GoPath': '',
        'AppRepo': 'git@github.com:acme/myapp.git',
        'AppPath': 'cmd/myapp',
        'RepoType': 'git',
        'RepoBranch': 'master',
        'UpdatePackages': False,
        'BuildAllPackages': False,
        'RunTests': False,
        'TestSkynet': False,
        'PreBuildCommands': [],
        'PostBuildCommands': [],
    },
    'Deploy': {
        'DeployPath': '/out',
        'BinaryName': 'app',
    },
}


class FakeBackend(ExecutionBackend):
    """记录所有命令的执行后端，命令包含 failures 中任一子串时返回失败"""

    def __init__(self, failures: List[str] = None):
        super().__init__()
        self.failures = list(failures or [])
        self.calls: List[Tuple[str, str, dict]] = []
        self.close_count = 0

    def _result(self, command, working_dir):
        self.calls.append((command, working_dir, dict(self.env)))
        for failure in self.failures:
            if failure in command:
                return False, f"{command}: exit status 1"
        return True, ''

    def execute(self, command):
        return self._result(command, None)

    def execute_at(self, command, working_dir):
        return self._result(command, working_dir)

    def close(self):
        self.close_count += 1
        super().close()

    @property
    def commands(self) -> List[str]:
        return [call[0] for call in self.calls]

    def index(self, prefix: str) -> int:
        """第一条以 prefix 开头的命令的位置"""
        for i, command in enumerate(self.commands):
            if command.startswith(prefix):
                return i
        raise AssertionError(f"未执行命令: {prefix}")


def make_config(build=None, deploy=None) -> Config:
    data = json.loads(json.dumps(BASE_CONFIG))
    data['Build'].update(build or {})
    data['Deploy'].update(deploy or {})
    return Config.from_dict(data)


@pytest.fixture
def config_data():
    return json.loads(json.dumps(BASE_CONFIG))


@pytest.fixture
def go_command_dir(tmp_path):
    """含有 package main 的源码目录"""
    source = tmp_path / 'src'
    source.mkdir()
    (source / 'main.go').write_text('package main\n\nfunc main() {}\n')
    return source


@pytest.fixture
def write_config(tmp_path):
    def _write(data) -> str:
        path = tmp_path / 'build.cfg'
        path.write_text(json.dumps(data))
        return str(path)
    return _write
