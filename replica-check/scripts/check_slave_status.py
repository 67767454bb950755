"""
Nagios check for the replication status of a MySQL / MariaDB replica
Prints one status line and exits with the plugin state code
"""
import argparse
import logging
import math
import sys
from typing import List, Optional

from check_states import (
    CheckError,
    InvalidArgument,
    MissingRequiredArgument,
    State,
)
from db_config import (
    CHECK_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_PASSWORD,
    DEFAULT_PORT,
    DEFAULT_USER,
    LOG_LEVEL,
    ConnectionParams,
    Thresholds,
)
from db_connection import MySQLClient
from utils import StatusChecker, Verdict

logger = logging.getLogger(__name__)

HELP = """
check_slave_status (c) GNU GPLv2 licence
Usage: check_slave_status -H host -P port -u username -p password [-s connection] [-w integer] [-c integer] [-t seconds] [-r] [-v]

Options:
-H Hostname or IP of slave server
-P Port of slave server
-u Username of DB-user
-p Password of DB-user
-s Connection name (optional, with multi-source replication)
-w Delay in seconds for Warning status (optional)
-c Delay in seconds for Critical status (optional)
-t Timeout in seconds for the mysql client (optional)
-r Use SHOW REPLICA STATUS instead of SHOW SLAVE STATUS (optional)
-v Verbose logging on stderr (optional)

Attention: The DB-user you type in must have CLIENT REPLICATION rights on the DB-server. Example:
\tGRANT REPLICATION CLIENT on *.* TO 'nagios'@'%' IDENTIFIED BY 'secret';"""

WRONG_OPTION = (
    "Wrong option given. Please use options -H for host, -P for port, "
    "-u for user and -p for password"
)

# Usage and option errors exit with 1, not UNKNOWN
USAGE_EXIT_CODE = 1


# Short options that take a value, with the long spelling used to bind it
VALUE_OPTIONS = {
    "-H": "--host",
    "-P": "--port",
    "-u": "--user",
    "-p": "--password",
    "-s": "--connection",
    "-w": "--warning",
    "-c": "--critical",
    "-t": "--timeout",
}


class HelpAction(argparse.Action):
    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings=option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        print(HELP)
        parser.exit(USAGE_EXIT_CODE)


class CheckArgumentParser(argparse.ArgumentParser):
    """Argument parser reporting option errors the way the check does"""

    def error(self, message):
        logger.debug(f"Argument error: {message}")
        print(WRONG_OPTION)
        self.exit(USAGE_EXIT_CODE)


def build_parser() -> CheckArgumentParser:
    parser = CheckArgumentParser(prog="check_slave_status", add_help=False)
    parser.add_argument("-H", "--host", dest="host", help="Hostname or IP of slave server")
    parser.add_argument("-P", "--port", dest="port", help="Port of slave server")
    parser.add_argument("-u", "--user", dest="user", help="Username of DB-user")
    parser.add_argument("-p", "--password", dest="password", help="Password of DB-user")
    parser.add_argument("-s", "--connection", dest="connection",
                        help="Connection name for multi-source replication")
    parser.add_argument("-w", "--warning", dest="warn", help="Delay in seconds for Warning status")
    parser.add_argument("-c", "--critical", dest="crit", help="Delay in seconds for Critical status")
    parser.add_argument("-t", "--timeout", dest="timeout", help="Timeout in seconds for the mysql client")
    parser.add_argument(
        "-r", "--replica-keywords",
        action="store_true",
        help="Use SHOW REPLICA STATUS instead of SHOW SLAVE STATUS"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging on stderr")
    parser.add_argument("-h", "--help", action=HelpAction, help="Show this help")
    return parser


def attach_option_values(argv: List[str]) -> List[str]:
    """
    Bind the token following a value option to that option, as getopts does

    argparse would take a password such as ``-Secr3t`` for an option of its
    own, ``--password=-Secr3t`` keeps it a value.
    """
    attached = []
    tokens = iter(argv)
    for token in tokens:
        long_option = VALUE_OPTIONS.get(token)
        value = next(tokens, None) if long_option else None
        if value is None:
            attached.append(token)
        else:
            attached.append(f"{long_option}={value}")
    return attached


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_params(args: argparse.Namespace) -> ConnectionParams:
    """Connection parameters from the options, falling back to the environment"""
    host = args.host or DEFAULT_HOST
    port = args.port or DEFAULT_PORT
    user = args.user or DEFAULT_USER
    password = args.password or DEFAULT_PASSWORD

    missing = [
        flag for flag, value in (("-H", host), ("-P", port), ("-u", user), ("-p", password))
        if not value
    ]
    if missing:
        raise MissingRequiredArgument(f"Missing required options: {', '.join(missing)}")

    try:
        port_number = int(port)
    except ValueError:
        raise InvalidArgument(f"Port must be an integer, got '{port}'")

    return ConnectionParams(
        host=host,
        port=port_number,
        user=user,
        password=password,
        connection_name=args.connection or None
    )


def build_thresholds(args: argparse.Namespace) -> Thresholds:
    """Raw thresholds, checked only once both replication threads run"""
    return Thresholds(warn=args.warn, crit=args.crit)


def build_timeout(args: argparse.Namespace) -> Optional[float]:
    """Timeout from -t, else from MYSQL_CHECK_TIMEOUT, None when neither is set"""
    value = args.timeout if args.timeout is not None else CHECK_TIMEOUT
    if value is None or value == "":
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise InvalidArgument(f"Timeout must be a number of seconds, got '{value}'")
    if not math.isfinite(timeout) or timeout <= 0:
        raise InvalidArgument(f"Timeout must be greater than 0, got '{value}'")
    return timeout


def run_check(args: argparse.Namespace) -> Verdict:
    params = build_params(args)
    checker = StatusChecker(
        params,
        thresholds=build_thresholds(args),
        client=MySQLClient(params, timeout=build_timeout(args), replica_keywords=args.replica_keywords)
    )
    return checker.check()


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if not argv or argv[0] == "--help":
        print(HELP)
        return USAGE_EXIT_CODE

    args = build_parser().parse_args(attach_option_values(argv))
    setup_logging(args.verbose)

    try:
        verdict = run_check(args)
    except MissingRequiredArgument as e:
        logger.warning(str(e))
        print(HELP)
        return int(State.UNKNOWN)
    except CheckError as e:
        verdict = Verdict.from_error(e)
    except Exception as e:
        logger.exception("Replication check failed unexpectedly")
        verdict = Verdict(State.UNKNOWN, f"Check failed unexpectedly: {e}")

    print(verdict.render())
    return verdict.exit_code


if __name__ == "__main__":
    sys.exit(main())
