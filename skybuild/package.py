"""
构建上下文

检查待构建的源码目录是否为可执行程序（Go的 package main），而不是库
"""
import logging
import re
from pathlib import Path
from typing import Optional, Set

from .errors import ValidationError

logger = logging.getLogger(__name__)

BLOCK_COMMENT_RE = re.compile(r'/\*.*?\*/', re.DOTALL)
PACKAGE_RE = re.compile(r'^package\s+([A-Za-z_][A-Za-z0-9_]*)')
IGNORE_CONSTRAINT_RE = re.compile(r'^//\s*(go:build|\+build)\s+ignore\s*$')


class BuildContext:
    """构建上下文（源码目录）"""

    def __init__(self, source_dir: str = '.'):
        self.source_dir = Path(source_dir)

    def package_names(self) -> Set[str]:
        """返回目录下非测试Go文件声明的包名集合"""
        names = set()
        for go_file in sorted(self.source_dir.glob('*.go')):
            if go_file.name.endswith('_test.go'):
                continue
            name = read_package_name(go_file.read_text(encoding='utf-8', errors='replace'))
            if name:
                names.add(name)
        return names


def read_package_name(source: str) -> Optional[str]:
    """
    读取Go源码的包名

    带有 ignore 构建约束的文件返回None
    """
    source = BLOCK_COMMENT_RE.sub('', source)
    for line in source.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith('//'):
            if IGNORE_CONSTRAINT_RE.match(line):
                return None
            continue
        match = PACKAGE_RE.match(line)
        if match:
            return match.group(1)
        return None
    return None


def validate_package(context: BuildContext):
    """校验构建上下文是一个命令（package main）"""
    if not context.source_dir.is_dir():
        raise ValidationError(f"源码目录不存在: {context.source_dir}")

    try:
        names = context.package_names()
    except OSError as e:
        raise ValidationError(f"无法读取源码目录 {context.source_dir}: {e}")

    if not names:
        raise ValidationError(f"目录中没有可构建的Go源文件: {context.source_dir}")

    if len(names) > 1:
        raise ValidationError(f"目录中存在多个包: {', '.join(sorted(names))}")

    if names != {'main'}:
        raise ValidationError(f"包不是可执行命令: package {names.pop()}")

    logger.debug(f"包校验通过: {context.source_dir}")
