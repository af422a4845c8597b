#!/usr/bin/env python3
"""
sky - Go程序构建/部署工具

用法:
    sky build  [--config build.cfg] [--source .]
    sky deploy [--config build.cfg] [--source .]
"""
import argparse
import logging
import sys

from . import __version__
from .builder import build, deploy
from .errors import SkyBuildError
from .log import setup_logging
from .package import BuildContext

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='sky', description='Go程序构建/部署工具')
    parser.add_argument('-v', '--verbose', action='store_true', help='输出调试日志')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', required=True)
    for name, help_text in (('build', '检出、编译并测试项目'), ('deploy', '将构建产物部署到本机')):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('--config', type=str, default=None, help='配置文件路径（默认 $SKY_CONFIG 或 ./build.cfg）')
        sub.add_argument('--source', type=str, default='.', help='待校验的源码目录')

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """主函数"""
    args = parse_args(argv)
    setup_logging(args.verbose)

    context = BuildContext(args.source)
    try:
        if args.command == 'build':
            build(args.config, context)
        else:
            deploy(args.config, context)
    except SkyBuildError as e:
        logger.error(f"{e.stage}: {e.message}")
        return 1
    except KeyboardInterrupt:
        logger.info("收到中断信号，正在退出...")
        return 130
    except Exception as e:
        logger.error(f"{args.command}: 未预期的错误: {e}", exc_info=True)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
