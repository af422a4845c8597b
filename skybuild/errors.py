"""
构建/部署错误类型

所有致命错误都携带所属阶段(stage)和错误信息，由CLI统一转换为退出码
"""


class SkyBuildError(Exception):
    """构建工具错误基类"""

    stage = 'build'

    def __init__(self, message: str, stage: str = None):
        super().__init__(message)
        self.message = message
        if stage:
            self.stage = stage

    def __str__(self):
        return f"{self.stage}: {self.message}"


class ConfigurationError(SkyBuildError):
    """配置文件无法读取或解析"""

    stage = 'config'


class ValidationError(SkyBuildError):
    """产物不是可执行程序，或构建环境缺少前置条件"""

    stage = 'validate'


class ConnectionError(SkyBuildError):
    """无法建立远程会话"""

    stage = 'connect'


class CheckoutError(SkyBuildError):
    """导入路径推导、目录创建或代码检出失败"""

    stage = 'checkout'


class CommandError(SkyBuildError):
    """Shell命令执行失败"""

    stage = 'command'

    def __init__(self, message: str, command: str = '', output: str = '', stage: str = None):
        super().__init__(message, stage)
        self.command = command
        self.output = output


class TransferError(SkyBuildError):
    """部署传输失败或主机组合不受支持"""

    stage = 'deploy'
