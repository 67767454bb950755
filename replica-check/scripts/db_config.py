"""
Centralized replica check configuration and connection parameters
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Directories appended to PATH when looking up the mysql client
EXTRA_BIN_DIRS = ["/usr/local/bin", "/usr/bin", "/bin"]


@dataclass(frozen=True)
class ConnectionParams:
    """Replica connection parameters"""
    host: str
    port: int
    user: str
    password: str = field(repr=False)
    connection_name: Optional[str] = None

    def describe(self) -> str:
        """Human readable target, without the password"""
        return f"{self.host}:{self.port} with username '{self.user}'"


@dataclass(frozen=True)
class Thresholds:
    """Replication delay thresholds in seconds"""
    warn: Optional[str] = None
    crit: Optional[str] = None

    @property
    def is_set(self) -> bool:
        return self.warn is not None and self.crit is not None


# Connection fallbacks for options not given on the command line
DEFAULT_HOST = os.getenv("MYSQL_HOST")
DEFAULT_PORT = os.getenv("MYSQL_PORT")
DEFAULT_USER = os.getenv("MYSQL_USER")
DEFAULT_PASSWORD = os.getenv("MYSQL_PASSWORD")

# Client settings
MYSQL_CLIENT = os.getenv("MYSQL_CLIENT", "mysql")
CHECK_TIMEOUT = os.getenv("MYSQL_CHECK_TIMEOUT")  # seconds, unset: no timeout

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
