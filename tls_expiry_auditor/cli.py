"""
命令行入口
"""
import os
import sys
import argparse
import logging
from typing import List, Optional

from .auditor import TLSExpiryAuditor
from .errors import InputSourceUnavailable
from .models import AuditConfig
from .services.config_validator import ConfigValidator
from .services.logger import LoggerService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tls-expiry-auditor',
        description='Report the negotiated TLS version and leaf certificate expiry of host:port endpoints.'
    )
    parser.add_argument('-file', '--file', dest='file', default=None,
                        help='The path to the file that has the host:port, one per line')
    parser.add_argument('-concurrency', '--concurrency', dest='concurrency', type=int, default=100,
                        help='Maximum number of TLS connections in flight (default: 100)')
    parser.add_argument('-timeout', '--timeout', dest='timeout', type=float, default=10.0,
                        help=('Timeout in seconds, applied separately to each connect attempt and to the TLS '
                              'handshake; DNS lookup is not bounded (default: 10)'))
    parser.add_argument('-warning-days', '--warning-days', dest='warning_days', type=int, default=30,
                        help='Certificates expiring within this many days are logged as warnings (default: 30)')
    return parser


def config_from_args(args: argparse.Namespace) -> AuditConfig:
    """由命令行参数和环境变量构建审计配置"""
    return AuditConfig(
        file_path=args.file,
        concurrency_limit=args.concurrency,
        timeout=args.timeout,
        warning_days=args.warning_days,
        sns_topic_arn=os.getenv('SNS_TOPIC_ARN') or None,
        log_level=os.getenv('LOG_LEVEL', 'INFO')
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    命令行入口

    Returns:
        int: 退出码（端点列表无法读取或配置无效时为1）
    """
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    logger_service = LoggerService(log_level=config.log_level, warning_days=config.warning_days)
    logger = logger_service.logger

    validator = ConfigValidator()
    validation = validator.validate_config(config)
    if not validation['is_valid']:
        for error in validation['errors']:
            print(f"fatal: {error}", file=sys.stderr)
        return 1

    auditor = TLSExpiryAuditor(config, logger_service=logger_service)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(validator.get_configuration_summary(config, validation))

    try:
        auditor.execute()
    except InputSourceUnavailable as e:
        logger.error(f"端点列表不可用，审计终止: {str(e)}")
        print(f"fatal: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
