"""
MySQL client wrapper used to fetch the replication status of a replica
"""
import math
import os
import re
import shutil
import subprocess
from typing import List, Optional
import logging

from check_states import ConnectionFailure, MissingPrerequisiteCommand
from db_config import EXTRA_BIN_DIRS, MYSQL_CLIENT, ConnectionParams

logger = logging.getLogger(__name__)

# Present in every answer of SHOW SLAVE/REPLICA STATUS on a configured replica
IO_STATE_PATTERN = re.compile(r"^\s*(?:Slave|Replica)_IO_State:", re.MULTILINE)


class MySQLClient:
    """Runs the replication status query through the mysql command line client"""

    def __init__(
        self,
        config: ConnectionParams,
        client: str = MYSQL_CLIENT,
        timeout: Optional[float] = None,
        replica_keywords: bool = False
    ):
        """
        Initialize the client wrapper

        Args:
            config: ConnectionParams instance
            client: Name or path of the mysql client binary
            timeout: Seconds to wait for the client, None to wait indefinitely
            replica_keywords: Use SHOW REPLICA STATUS instead of SHOW SLAVE STATUS
        """
        self.config = config
        self.client = client
        self.timeout = timeout
        self.replica_keywords = replica_keywords

    def locate_client(self) -> str:
        """Find the client binary on PATH extended with the usual bin directories"""
        search_path = os.pathsep.join([os.environ.get("PATH", "")] + EXTRA_BIN_DIRS)
        executable = shutil.which(self.client, path=search_path)
        if executable is None:
            raise MissingPrerequisiteCommand(
                f"This script requires the command '{self.client}' but it does not exist; "
                f"please check if command exists and PATH is correct"
            )
        return executable

    def status_query(self) -> str:
        """Status statement, scoped to the connection name if one is set"""
        keyword = "REPLICA" if self.replica_keywords else "SLAVE"
        if self.config.connection_name:
            name = self.config.connection_name.replace('"', '""')
            return f'SHOW {keyword} "{name}" STATUS\\G'
        return f"SHOW {keyword} STATUS\\G"

    def build_command(self, executable: str) -> List[str]:
        """Client argument list. The password is passed through the environment."""
        command = [
            executable,
            "-h", self.config.host,
            "-P", str(self.config.port),
            "-u", self.config.user,
        ]
        if self.timeout is not None:
            command.append(f"--connect-timeout={max(1, math.ceil(self.timeout))}")
        command.extend(["-e", self.status_query()])
        return command

    def connection_failure_message(self) -> str:
        return f"Unable to connect to server {self.config.describe()} and given password"

    def fetch_status(self) -> str:
        """
        Run the status query once

        Returns:
            Combined stdout and stderr of the client

        Raises:
            MissingPrerequisiteCommand: if the client binary is not found
            ConnectionFailure: if the answer holds no replication IO state
        """
        executable = self.locate_client()
        command = self.build_command(executable)
        env = dict(os.environ, MYSQL_PWD=self.config.password)

        logger.info(
            f"Querying replication status on {self.config.host}:{self.config.port} "
            f"as '{self.config.user}'"
        )
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=env,
                timeout=self.timeout,
                text=True,
                errors="replace",
                check=False
            )
        except subprocess.TimeoutExpired:
            logger.error(f"No answer from {self.config.host}:{self.config.port} within {self.timeout}s")
            raise ConnectionFailure(
                f"{self.connection_failure_message()} (no answer within {self.timeout}s)"
            )

        output = result.stdout or ""
        logger.debug(f"Client exited with code {result.returncode}")
        if not IO_STATE_PATTERN.search(output):
            logger.warning(f"No replication status in client output: {output.strip()}")
            raise ConnectionFailure(self.connection_failure_message())
        return output
