"""Shared fixtures for HostOps tests"""

import pytest

from hostops.core.capabilities import ExecutorDispatch, create_registry
from hostops.core.capabilities.executors.platform import Platform
from hostops.core.capabilities.runner_base import ScriptedRunner
from hostops.core.config import reset_config


class FakeClock:
    """Monotonic clock advanced only by sleep() or advance()"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Every test starts from default configuration"""
    for var in ("HOSTOPS_CAPABILITY_TIMEOUTS", "HOSTOPS_PING_HOST", "HOSTOPS_BUDGET_POLICY",
                "HOSTOPS_MAX_OUTPUT_BYTES", "HOSTOPS_LANGUAGE", "HOSTOPS_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def runner():
    return ScriptedRunner()


@pytest.fixture
def registry(runner):
    return create_registry(runner, platform=Platform.LINUX)


@pytest.fixture
def dispatch(registry):
    return ExecutorDispatch(registry)


@pytest.fixture
def clock():
    return FakeClock()


# Captured Linux command outputs
UPTIME_OUT = " 10:15:01 up 3 days,  2:04,  2 users,  load average: 0.52, 0.58, 0.59\n"

FREE_OUT = (
    "               total        used        free      shared  buff/cache   available\n"
    "Mem:     16000000000  6000000000  4000000000   100000000  6000000000  8000000000\n"
    "Swap:     2000000000           0  2000000000\n"
)

PROC_STAT_OUT = (
    "cpu  1000 0 1000 8000 0 0 0 0 0 0\n"
    "cpu0 500 0 500 4000 0 0 0 0 0 0\n"
    "cpu1 500 0 500 4000 0 0 0 0 0 0\n"
    "intr 123456\n"
    "ctxt 654321\n"
)

PS_AUX_OUT = (
    "USER         PID %CPU %MEM    VSZ   RSS TTY      STAT START   TIME COMMAND\n"
    "root           1  0.0  0.1 167000 11000 ?        Ss   Oct18   0:05 /sbin/init\n"
    "www-data    2211 42.5  3.2 900000 520000 ?       Sl   Oct18  12:00 python3 app.py --workers 4\n"
    "postgres    1880  7.1 12.4 2100000 2000000 ?     Ss   Oct18   3:10 postgres: checkpointer\n"
    "alice       3101  1.0  0.5 20000  8000 pts/0    R+   10:14   0:00 ps aux\n"
)

PS_STATES_OUT = (
    "    PID STAT COMMAND\n"
    "      1 Ss   systemd\n"
    "   2211 Sl   python3\n"
    "   1880 Ss   postgres\n"
    "   3101 R+   ps\n"
    "   4000 S    kworker\n"
)

DISKSTATS_OUT = (
    "   7       0 loop0 100 0 200 10 0 0 0 0 0 10 10 0 0 0 0\n"
    "   8       0 sda 5000 100 200000 3000 4000 50 100000 2000 0 1000 5000 0 0 0 0\n"
    " 259       0 nvme0n1 800 0 16000 100 600 0 12000 90 0 200 190 0 0 0 0\n"
)

DF_OUT = (
    "Filesystem     1024-blocks      Used Available Capacity Mounted on\n"
    "/dev/sda1        102400000  51200000  51200000      50% /\n"
    "/dev/sdb1         20480000  15360000   5120000      75% /var/lib/data\n"
    "tmpfs              1024000         0   1024000       0% /run/user/1000\n"
)

NETSTAT_OUT = (
    "Active Internet connections (servers and established)\n"
    "Proto Recv-Q Send-Q Local Address           Foreign Address         State\n"
    "tcp        0      0 0.0.0.0:22              0.0.0.0:*               LISTEN\n"
    "tcp        0      0 10.0.0.5:22             10.0.0.9:51514          ESTABLISHED\n"
    "tcp        0      0 10.0.0.5:443            10.0.0.7:40022          ESTABLISHED\n"
    "tcp        0      0 10.0.0.5:443            10.0.0.8:40100          TIME_WAIT\n"
    "tcp6       0      0 :::80                   :::*                    LISTEN\n"
    "udp        0      0 0.0.0.0:68              0.0.0.0:*\n"
)

PING_OUT = (
    "PING example.com (93.184.216.34) 56(84) bytes of data.\n"
    "64 bytes from 93.184.216.34: icmp_seq=1 ttl=56 time=11.2 ms\n"
    "64 bytes from 93.184.216.34: icmp_seq=2 ttl=56 time=11.6 ms\n"
    "\n"
    "--- example.com ping statistics ---\n"
    "2 packets transmitted, 2 received, 0% packet loss, time 1001ms\n"
    "rtt min/avg/max/mdev = 11.200/11.400/11.600/0.200 ms\n"
)


def script_linux_host(runner: ScriptedRunner) -> ScriptedRunner:
    """Script every command the built-in diagnostics run on Linux"""
    runner.script("uptime", stdout=UPTIME_OUT)
    runner.script("free", stdout=FREE_OUT, args=["-b"])
    runner.script("cat", stdout=PROC_STAT_OUT, args=["/proc/stat"])
    runner.script("cat", stdout=DISKSTATS_OUT, args=["/proc/diskstats"])
    runner.script("ps", stdout=PS_AUX_OUT)
    runner.script("ps", stdout=PS_STATES_OUT, args=["axo", "pid,stat,comm"])
    runner.script("df", stdout=DF_OUT)
    runner.script("netstat", stdout=NETSTAT_OUT)
    runner.script("ping", stdout=PING_OUT)
    return runner


@pytest.fixture
def linux_host(runner):
    """ScriptedRunner answering like a healthy Linux host"""
    return script_linux_host(runner)
