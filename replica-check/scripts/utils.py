"""
Shared utilities for the replica status check
Contains ReplicationStatus parsing, the Verdict type and the StatusChecker class
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from check_states import CheckError, InvalidThresholdConfiguration, State
from db_config import ConnectionParams, Thresholds
from db_connection import MySQLClient

logger = logging.getLogger(__name__)


class SqlRunning(Enum):
    """Literal values of Slave_SQL_Running"""
    YES = "Yes"
    NO = "No"
    NULL = "NULL"
    OTHER = ""

    @classmethod
    def _missing_(cls, value):
        return cls.OTHER


class IoRunning(Enum):
    """Literal values of Slave_IO_Running"""
    YES = "Yes"
    NO = "No"
    CONNECTING = "Connecting"
    OTHER = ""

    @classmethod
    def _missing_(cls, value):
        return cls.OTHER


def extract_field(output: str, *keys: str) -> str:
    """
    Value of the first labelled line matching one of ``keys``

    The key must be followed directly by a colon, so ``Slave_SQL_Running``
    never matches ``Slave_SQL_Running_State``. Only the first token after
    the colon is returned, an absent field gives an empty string.
    """
    for key in keys:
        match = re.search(rf"^\s*{re.escape(key)}:[ \t]*(\S*)", output, re.MULTILINE)
        if match:
            return match.group(1)
    return ""


@dataclass(frozen=True)
class ReplicationStatus:
    """Snapshot of one SHOW SLAVE STATUS answer"""
    sql_running: SqlRunning
    io_running: IoRunning
    sql_running_raw: str
    io_running_raw: str
    master_host: Optional[str]
    seconds_behind_master: Optional[int]

    @classmethod
    def parse(cls, output: str) -> "ReplicationStatus":
        """Build a status from vertical (\\G) client output, old or new keywords"""
        sql_raw = extract_field(output, "Slave_SQL_Running", "Replica_SQL_Running")
        io_raw = extract_field(output, "Slave_IO_Running", "Replica_IO_Running")
        master = extract_field(output, "Master_Host", "Source_Host")
        delay = extract_field(output, "Seconds_Behind_Master", "Seconds_Behind_Source")

        return cls(
            sql_running=SqlRunning(sql_raw),
            io_running=IoRunning(io_raw),
            sql_running_raw=sql_raw,
            io_running_raw=io_raw,
            master_host=master or None,
            seconds_behind_master=int(delay) if delay.isdigit() else None
        )

    @property
    def delay_display(self) -> str:
        if self.seconds_behind_master is None:
            return "NULL"
        return str(self.seconds_behind_master)


@dataclass(frozen=True)
class Verdict:
    """Final state of a check, printed as one line"""
    state: State
    message: str
    perfdata: Optional[str] = None

    @classmethod
    def from_error(cls, error: CheckError) -> "Verdict":
        return cls(error.state, str(error))

    @property
    def exit_code(self) -> int:
        return int(self.state)

    def render(self) -> str:
        line = f"{self.state.name}: {' '.join(self.message.splitlines())}"
        if self.perfdata:
            line += f" | {self.perfdata}"
        return line


def delay_perfdata(seconds: Optional[int]) -> Optional[str]:
    if seconds is None:
        return None
    return f"delay={seconds}s"


def parse_threshold(value, label: str) -> int:
    message = f"{label} threshold must be a valid integer greater than 0"
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        raise InvalidThresholdConfiguration(message)
    if seconds <= 0:
        raise InvalidThresholdConfiguration(message)
    return seconds


class StatusChecker:
    """Checks the replication threads and delay of one replica"""

    def __init__(
        self,
        config: ConnectionParams,
        thresholds: Thresholds = Thresholds(),
        client: Optional[MySQLClient] = None
    ):
        self.config = config
        self.thresholds = thresholds
        self.client = client or MySQLClient(config)

    def fetch(self) -> ReplicationStatus:
        """Query the replica once and parse the answer"""
        status = ReplicationStatus.parse(self.client.fetch_status())
        logger.info(
            f"Slave_SQL_Running={status.sql_running_raw} "
            f"Slave_IO_Running={status.io_running_raw} "
            f"Master_Host={status.master_host} "
            f"Seconds_Behind_Master={status.delay_display}"
        )
        return status

    def validate_thresholds(self):
        """
        Parse and check the delay thresholds

        Returns:
            (warn, crit) pair of seconds

        Raises:
            InvalidThresholdConfiguration: if a threshold is not a positive integer
                or warn exceeds crit
        """
        warn = parse_threshold(self.thresholds.warn, "Warning")
        crit = parse_threshold(self.thresholds.crit, "Critical")
        if warn > crit:
            raise InvalidThresholdConfiguration("Warning threshold cannot be greater than critical")
        return warn, crit

    def classify(self, status: ReplicationStatus) -> Verdict:
        """Map a replication status to a verdict, first matching rule wins"""
        host, port = self.config.host, self.config.port

        if status.sql_running is SqlRunning.NULL:
            return Verdict(State.CRITICAL, "Slave_SQL_Running is answering NULL")

        if status.sql_running is SqlRunning.NO:
            return Verdict(State.CRITICAL, f"{host}:{port} Slave_SQL_Running: {status.sql_running_raw}")

        if status.io_running in (IoRunning.NO, IoRunning.CONNECTING):
            return Verdict(State.CRITICAL, f"{host} Slave_IO_Running: {status.io_running_raw}")

        if status.sql_running is SqlRunning.YES and status.io_running is IoRunning.YES:
            if self.thresholds.is_set:
                try:
                    return self._classify_delay(status)
                except InvalidThresholdConfiguration as e:
                    return Verdict.from_error(e)
            return self._running_verdict(status)

        return Verdict(
            State.UNKNOWN,
            f"unrecognized replication state (Slave_SQL_Running is {status.sql_running_raw}, "
            f"Slave_IO_Running is {status.io_running_raw})"
        )

    def _classify_delay(self, status: ReplicationStatus) -> Verdict:
        warn, crit = self.validate_thresholds()
        delay = status.seconds_behind_master
        if delay is None:
            return Verdict(
                State.UNKNOWN,
                "Seconds_Behind_Master is NULL, cannot compare against thresholds"
            )

        if delay >= crit:
            return Verdict(State.CRITICAL, f"Slave is {delay} seconds behind Master", delay_perfdata(delay))
        if delay >= warn:
            return Verdict(State.WARNING, f"Slave is {delay} seconds behind Master", delay_perfdata(delay))
        return self._running_verdict(status)

    def _running_verdict(self, status: ReplicationStatus) -> Verdict:
        return Verdict(
            State.OK,
            f"Slave SQL running: {status.sql_running_raw} "
            f"Slave IO running: {status.io_running_raw} / "
            f"master: {status.master_host or ''} / "
            f"slave is {status.delay_display} seconds behind master",
            delay_perfdata(status.seconds_behind_master)
        )

    def check(self) -> Verdict:
        """Run the whole check: fetch, parse and classify"""
        try:
            status = self.fetch()
        except CheckError as e:
            logger.error(f"Check of {self.config.host}:{self.config.port} failed: {e}")
            return Verdict.from_error(e)

        verdict = self.classify(status)
        logger.info(f"Verdict {verdict.state.name} for {self.config.host}:{self.config.port}")
        return verdict
