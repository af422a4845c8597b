import logging
import os
import sys

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(verbose: bool = False):
    """设置日志"""
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = os.environ.get('SKY_LOG_FILE')
    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        if os.path.isdir(log_dir) and os.access(log_dir, os.W_OK):
            handlers.append(logging.FileHandler(log_file, mode='a', encoding='utf-8'))

    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, os.environ.get('SKY_LOG_LEVEL', 'INFO').upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers
    )
