"""部署器测试"""
import os
import stat
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from skybuild.backends import LocalBackend
from skybuild.deployer import Deployer
from skybuild.errors import TransferError

from conftest import make_config


def make_deployer(backend=None, **build):
    deploy = build.pop('deploy', {})
    config = make_config(build, deploy)
    return Deployer(config.build, config.deploy, backend or LocalBackend())


@pytest.fixture
def local_artifact(tmp_path):
    jail = tmp_path / 'jail'
    (jail / 'bin').mkdir(parents=True)
    artifact = jail / 'bin' / 'myapp'
    artifact.write_text('binary v1')
    artifact.chmod(0o755)
    out = tmp_path / 'out'
    out.mkdir()
    return jail, out


def test_artifact_and_target_paths():
    deployer = make_deployer(Jail='/j', AppPath='myapp', deploy={'DeployPath': '/out', 'BinaryName': 'app'})

    assert deployer.artifact_path == '/j/bin/myapp'
    assert deployer.target_path == '/out/app'


def test_artifact_named_after_app_path_base_name():
    deployer = make_deployer(Jail='/j', AppPath='cmd/server/')
    assert deployer.artifact_path == '/j/bin/server'


class TestLocalDeploy:

    def test_copies_artifact(self, local_artifact):
        jail, out = local_artifact
        deployer = make_deployer(Jail=str(jail), AppPath='cmd/myapp', deploy={'DeployPath': str(out), 'BinaryName': 'app'})

        deployer.deploy(['localhost'])

        target = out / 'app'
        assert target.read_text() == 'binary v1'
        assert os.stat(target).st_mode & stat.S_IXUSR

    def test_missing_artifact(self, tmp_path):
        deployer = make_deployer(Jail=str(tmp_path), AppPath='myapp', deploy={'DeployPath': str(tmp_path)})

        with pytest.raises(TransferError):
            deployer.deploy(['localhost'])

    def test_remote_destination_rejected(self, local_artifact):
        jail, out = local_artifact
        deployer = make_deployer(Jail=str(jail), AppPath='myapp', deploy={'DeployPath': str(out), 'BinaryName': 'app'})

        with pytest.raises(TransferError) as exc_info:
            deployer.deploy(['prod.example.com'])

        assert 'prod.example.com' in exc_info.value.message
        assert not (out / 'app').exists()

    def test_hosts_processed_in_order_without_rollback(self, local_artifact):
        jail, out = local_artifact
        deployer = make_deployer(Jail=str(jail), AppPath='myapp', deploy={'DeployPath': str(out), 'BinaryName': 'app'})

        with pytest.raises(TransferError):
            deployer.deploy(['localhost', 'prod.example.com', '127.0.0.1'])

        # 第一个主机已经部署完成，不会回滚
        assert (out / 'app').read_text() == 'binary v1'


class TestRemoteBuildDeploy:

    def make_remote(self, tmp_path, sftp):
        backend = MagicMock()
        backend.open_sftp.return_value = sftp
        deployer = make_deployer(
            backend,
            Host='build.example.com:2222',
            Jail='/j',
            AppPath='cmd/myapp',
            deploy={'DeployPath': str(tmp_path), 'BinaryName': 'app'},
        )
        return deployer, backend

    def test_pulls_artifact_from_build_host(self, tmp_path):
        sftp = MagicMock()
        sftp.get.side_effect = lambda source, target: Path(target).write_text('remote binary')
        deployer, backend = self.make_remote(tmp_path, sftp)

        deployer.deploy(['localhost'])

        sftp.get.assert_called_once_with('/j/bin/myapp', str(tmp_path / 'app'))
        sftp.close.assert_called_once()
        assert os.stat(tmp_path / 'app').st_mode & 0o777 == 0o755

    def test_pull_failure(self, tmp_path):
        sftp = MagicMock()
        sftp.get.side_effect = IOError('No such file')
        deployer, _ = self.make_remote(tmp_path, sftp)

        with pytest.raises(TransferError):
            deployer.deploy(['localhost'])
        sftp.close.assert_called_once()

    def test_remote_to_remote_rejected(self, tmp_path):
        sftp = MagicMock()
        deployer, backend = self.make_remote(tmp_path, sftp)

        with pytest.raises(TransferError):
            deployer.deploy(['prod.example.com'])
        backend.open_sftp.assert_not_called()
