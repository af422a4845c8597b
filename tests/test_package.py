"""构建上下文校验测试"""
import pytest

from skybuild.errors import ValidationError
from skybuild.package import BuildContext, read_package_name, validate_package


def test_command_package(go_command_dir):
    validate_package(BuildContext(str(go_command_dir)))


def test_library_package(tmp_path):
    (tmp_path / 'lib.go').write_text('package lib\n')

    with pytest.raises(ValidationError) as exc_info:
        validate_package(BuildContext(str(tmp_path)))
    assert 'lib' in exc_info.value.message


def test_test_files_ignored(tmp_path):
    (tmp_path / 'main.go').write_text('package main\n')
    (tmp_path / 'main_test.go').write_text('package main_test\n')

    validate_package(BuildContext(str(tmp_path)))


def test_only_test_files(tmp_path):
    (tmp_path / 'main_test.go').write_text('package main\n')

    with pytest.raises(ValidationError):
        validate_package(BuildContext(str(tmp_path)))


def test_mixed_packages(tmp_path):
    (tmp_path / 'main.go').write_text('package main\n')
    (tmp_path / 'util.go').write_text('package util\n')

    with pytest.raises(ValidationError):
        validate_package(BuildContext(str(tmp_path)))


def test_ignored_files_skipped(tmp_path):
    (tmp_path / 'main.go').write_text('package main\n')
    (tmp_path / 'gen.go').write_text('//go:build ignore\n\npackage generator\n')

    validate_package(BuildContext(str(tmp_path)))


def test_missing_directory(tmp_path):
    with pytest.raises(ValidationError):
        validate_package(BuildContext(str(tmp_path / 'missing')))


def test_read_package_name_skips_comments():
    source = '''/*
Copyright notice
package notthis
*/

// Command myapp does things.
package main

import "fmt"
'''
    assert read_package_name(source) == 'main'


def test_read_package_name_without_clause():
    assert read_package_name('// only a comment\n') is None
