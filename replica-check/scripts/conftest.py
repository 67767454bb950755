"""
Shared fixtures for the replica check tests
"""
import pytest
from faker import Faker

import check_slave_status
from db_config import ConnectionParams

Faker.seed(4321)
fake = Faker()

SLAVE_STATUS_TEMPLATE = """*************************** 1. row ***************************
               Slave_IO_State: {io_state}
                  Master_Host: {master}
                  Master_User: repl
                  Master_Port: 3306
                Connect_Retry: 60
              Master_Log_File: mysql-bin.000042
          Read_Master_Log_Pos: 1337
               Relay_Log_File: relay-bin.000007
                Relay_Log_Pos: 4711
        Relay_Master_Log_File: mysql-bin.000042
             Slave_IO_Running: {io}
            Slave_SQL_Running: {sql}
                   Last_Errno: 0
                   Last_Error:
        Seconds_Behind_Master: {delay}
      Slave_SQL_Running_State: {sql_state}
"""

REPLICA_STATUS_TEMPLATE = """*************************** 1. row ***************************
             Replica_IO_State: Waiting for source to send event
                  Source_Host: {master}
                  Source_Port: 3306
           Replica_IO_Running: {io}
          Replica_SQL_Running: {sql}
        Seconds_Behind_Source: {delay}
    Replica_SQL_Running_State: Replica has read all relay log; waiting for more updates
"""


def slave_status_output(sql="Yes", io="Yes", delay="0", master="10.0.0.5",
                        io_state="Waiting for master to send event",
                        sql_state="Slave has read all relay log; waiting for more updates"):
    """Vertical SHOW SLAVE STATUS answer as printed by the mysql client"""
    return SLAVE_STATUS_TEMPLATE.format(
        sql=sql, io=io, delay=delay, master=master, io_state=io_state, sql_state=sql_state
    )


def replica_status_output(sql="Yes", io="Yes", delay="0", master="10.0.0.5"):
    """Vertical SHOW REPLICA STATUS answer (MySQL 8 keywords)"""
    return REPLICA_STATUS_TEMPLATE.format(sql=sql, io=io, delay=delay, master=master)


@pytest.fixture
def params():
    """Connection parameters with generated host, user and password"""
    return ConnectionParams(
        host=fake.ipv4(),
        port=fake.random_int(min=3306, max=3399),
        user=fake.user_name(),
        password=fake.password(length=20)
    )


@pytest.fixture(autouse=True)
def no_environment_defaults(monkeypatch):
    """Keep MYSQL_* variables of the test machine out of the checks"""
    for name in ("DEFAULT_HOST", "DEFAULT_PORT", "DEFAULT_USER", "DEFAULT_PASSWORD",
                 "CHECK_TIMEOUT"):
        monkeypatch.setattr(check_slave_status, name, None)
