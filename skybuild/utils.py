from typing import Tuple

DEFAULT_SSH_PORT = '22'

LOCAL_HOSTS = ('', 'localhost', '127.0.0.1')


def is_host_local(host: str) -> bool:
    """判断主机是否为本机"""
    return host in LOCAL_HOSTS


def split_host_port(host: str) -> Tuple[str, str]:
    """拆分 host[:port]，端口缺省为22"""
    parts = host.split(':')
    if len(parts) < 2:
        return parts[0], DEFAULT_SSH_PORT
    return parts[0], parts[1]
