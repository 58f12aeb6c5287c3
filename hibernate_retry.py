#!/usr/bin/python3

### Hibernate a linux host, and if the kernel refuses, kill whatever the
### audit log says was fiddling with /sys/power/state - then try once more.
### Meant to be run as a oneshot systemd service, see --print-systemd-unit.

### The kill logic is deliberately conservative: a static whitelist of
### system processes is never touched, and at most kill_budget distinct
### process names are killed in one pass.

__version__ = "0.1.0"
__license__ = "GPL"
__product__ = "hibernate-retry"

import argparse
import configparser
import json
import logging
import os
import re
import signal
import subprocess
import sys
import time
from collections import namedtuple
from datetime import datetime
from os import getenv, getpid, kill

# Optional imports with graceful fallback
try:
    import yaml

    HAS_YAML = True
except ImportError:
    HAS_YAML = False

try:
    import tomllib  # Python 3.11+

    HAS_TOML = True
except ImportError:
    try:
        import tomli as tomllib  # Fallback for older Python

        HAS_TOML = True
    except ImportError:
        HAS_TOML = False


#########################
## Configuration section
#########################

# Default config file search paths (in order of preference)
CONFIG_SEARCH_PATHS = [
    "/etc/hibernate-retry.yaml",
    "/etc/hibernate-retry.yml",
    "/etc/hibernate-retry.toml",
    "/etc/hibernate-retry.json",
    "/etc/hibernate-retry.conf",
]

# Essential Ubuntu/Pop!_OS system processes - never killed
DEFAULT_WHITELIST = [
    "systemd",
    "systemd-journald",
    "systemd-logind",
    "systemd-udevd",
    "networkd-dispatcher",
    "NetworkManager",
    "sshd",
    "cron",
    "dbus-daemon",
    "polkitd",
    "acpid",
    "atd",
    "unattended-upgrades",
]

POWER_STATE_FILE = "/sys/power/state"


def _parse_bool(value):
    """Parse boolean from string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    return str(value).lower() in ("true", "yes", "1", "on")


def _parse_list(value):
    """Parse space-separated list."""
    if isinstance(value, list):
        return value
    if not value or not str(value).strip():
        return []
    return str(value).split()


def _parse_timeout(value):
    """Seconds as float; empty, zero or negative means no timeout."""
    if value is None or str(value).strip() == "":
        return None
    value = float(value)
    return value if value > 0 else None


# Each entry: config_key -> (type_converter, env_var_name, file_key_aliases)
# The two log paths keep the environment names the systemd unit has always used.
CONFIG_SCHEMA = {
    "log_file": (str, "LOG_FILE", ["log-file"]),
    "retry_log": (str, "HIBERNATION_RETRY_LOG", ["retry-log", "hibernation-retry-log"]),
    "kill_budget": (int, "HIBERNATE_RETRY_KILL_BUDGET", ["kill-budget", "max-kill-count"]),
    "whitelist": (_parse_list, "HIBERNATE_RETRY_WHITELIST", ["cmd-whitelist"]),
    "audit_key": (str, "HIBERNATE_RETRY_AUDIT_KEY", ["audit-key"]),
    "audit_since": (str, "HIBERNATE_RETRY_AUDIT_SINCE", ["audit-since"]),
    "hibernate_command": (_parse_list, "HIBERNATE_RETRY_HIBERNATE_COMMAND", ["hibernate-command"]),
    "hibernate_timeout": (_parse_timeout, "HIBERNATE_RETRY_HIBERNATE_TIMEOUT", ["hibernate-timeout"]),
    "audit_timeout": (_parse_timeout, "HIBERNATE_RETRY_AUDIT_TIMEOUT", ["audit-timeout"]),
    "debug_logging": (_parse_bool, "HIBERNATE_RETRY_DEBUG_LOGGING", ["debug-logging"]),
    "date_human_readable": (_parse_bool, "HIBERNATE_RETRY_DATE_HUMAN_READABLE", ["date-human-readable"]),
}


def load_from_file(path=None):
    """Load configuration from file (auto-detect format by extension)."""
    if path:
        paths = [path]
    else:
        paths = CONFIG_SEARCH_PATHS

    for filepath in paths:
        if not os.path.exists(filepath):
            continue
        ext = os.path.splitext(filepath)[1].lower()
        logging.debug("reading config from %s" % filepath)
        try:
            if ext in (".yaml", ".yml"):
                return _load_yaml(filepath)
            elif ext == ".toml":
                return _load_toml(filepath)
            elif ext == ".json":
                return _load_json(filepath)
            else:  # .conf, .ini, or unknown
                return _load_ini(filepath)
        except ImportError as e:
            logging.warning(f"Config format not supported for {filepath}: {e}")
            continue
        except Exception as e:
            logging.warning(f"Failed to load config from {filepath}: {e}")
            continue
    return {}


def _load_yaml(path):
    """Load YAML config, settings optionally nested under hibernate-retry."""
    if not HAS_YAML:
        raise ImportError("PyYAML not installed - install with: pip install PyYAML")
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return data.get("hibernate-retry", data)


def _load_toml(path):
    """Load TOML config file (tomllib, or tomli before Python 3.11)."""
    if not HAS_TOML:
        raise ImportError("TOML support not available - install tomli (Python <3.11) or use Python 3.11+")
    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data.get("hibernate-retry", data)


def _load_json(path):
    """Load JSON config file."""
    with open(path) as f:
        data = json.load(f)
    return data.get("hibernate-retry", data)


def _load_ini(path):
    """Load INI config file - only the [hibernate-retry] section is read."""
    parser = configparser.ConfigParser()
    parser.read(path)
    if "hibernate-retry" not in parser:
        return {}
    return dict(parser["hibernate-retry"])


def load_from_env():
    """Load configuration from environment variables."""
    env_config = {}

    for config_key, (converter, env_var, _) in CONFIG_SCHEMA.items():
        value = getenv(env_var)
        if value is not None:
            try:
                env_config[config_key] = converter(value)
            except (ValueError, TypeError) as e:
                logging.warning(f"Invalid value for {env_var}: {value} - {e}")

    return env_config


def get_defaults():
    """Get default configuration values."""
    return {
        "log_file": "/var/log/hibernation_log.txt",
        "retry_log": "/var/log/hibernation_retry.log",
        "kill_budget": 3,
        "whitelist": list(DEFAULT_WHITELIST),
        "audit_key": "hibernate-issue",
        "audit_since": None,  # None means the whole audit log, as ausearch does by default
        "hibernate_command": ["systemctl", "hibernate"],
        "hibernate_timeout": None,  # block until the hibernate call returns
        "audit_timeout": None,
        "debug_logging": False,
        "date_human_readable": True,
    }


def normalize_file_config(file_config):
    """Normalize config keys and values from file config.

    Handles underscore/hyphen differences and type conversions.
    """
    normalized = {}

    file_key_to_config = {}
    for config_key, (_, _, aliases) in CONFIG_SCHEMA.items():
        for alias in aliases:
            file_key_to_config[alias] = config_key

    for key, value in file_config.items():
        norm_key = file_key_to_config.get(key, key.replace("-", "_"))

        if norm_key in CONFIG_SCHEMA:
            converter = CONFIG_SCHEMA[norm_key][0]
            try:
                normalized[norm_key] = converter(value)
            except (ValueError, TypeError) as e:
                logging.warning(f"Invalid value for config key {key}: {value} - {e}")
        else:
            logging.warning(f"Unknown config key {key} ignored")

    return normalized


Config = namedtuple("Config", tuple(CONFIG_SCHEMA))


def load_config(args):
    """Merge config from defaults <- file <- env <- CLI.

    Priority order (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Defaults
    """
    final = get_defaults()

    config_path = getattr(args, "config", None)
    file_config = load_from_file(config_path)
    if file_config:
        final.update(normalize_file_config(file_config))

    final.update(load_from_env())

    for config_key in CONFIG_SCHEMA:
        value = getattr(args, config_key, None)
        if value is not None:
            final[config_key] = value

    return final


def init_config(args=None):
    """Build the immutable Config for one run.

    This should be called once at startup, after argument parsing.  The
    result is handed explicitly to the controller and the remediation
    engine; nothing here is kept at module level.
    """
    if args is None:
        args = argparse.Namespace()

    cfg = load_config(args)

    if cfg["kill_budget"] < 0:
        logging.warning("kill_budget %s is negative, using 0 (nothing will be killed)" % cfg["kill_budget"])
        cfg["kill_budget"] = 0
    if not cfg["hibernate_command"]:
        logging.warning("empty hibernate_command, falling back to systemctl hibernate")
        cfg["hibernate_command"] = get_defaults()["hibernate_command"]

    cfg["whitelist"] = frozenset(cfg["whitelist"])
    cfg["hibernate_command"] = tuple(cfg["hibernate_command"])
    return Config(**cfg)


def create_argument_parser():
    """Create argument parser with all configuration options."""
    p = argparse.ArgumentParser(
        description="Hibernate the host; on failure kill the processes blocking it and retry once",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration priority (highest to lowest):
  1. Command-line arguments
  2. Environment variables (LOG_FILE, HIBERNATION_RETRY_LOG, HIBERNATE_RETRY_*)
  3. Config file (--config or auto-detected)
  4. Built-in defaults

Config file search order (first found is used):
  /etc/hibernate-retry.yaml
  /etc/hibernate-retry.yml
  /etc/hibernate-retry.toml
  /etc/hibernate-retry.json
  /etc/hibernate-retry.conf

The audit rule has to be installed for the remediation to find anything:
  hibernate-retry --print-audit-rule >> /etc/audit/rules.d/hibernate.rules

Example usage:
  hibernate-retry
  hibernate-retry --kill-budget=1 --debug
  hibernate-retry --print-systemd-unit > /etc/systemd/system/hibernation_manager.service
""",
    )

    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    p.add_argument(
        "--config",
        "-c",
        metavar="PATH",
        help="Configuration file path (auto-detects format by extension)",
    )
    p.add_argument(
        "--debug",
        "--debug-logging",
        dest="debug_logging",
        action="store_true",
        default=None,
        help="Enable debug logging",
    )

    # Log files
    p.add_argument(
        "--log-file",
        dest="log_file",
        metavar="PATH",
        help="General log file (default: /var/log/hibernation_log.txt)",
    )
    p.add_argument(
        "--retry-log",
        dest="retry_log",
        metavar="PATH",
        help="Append-only log of the hibernation attempts (default: /var/log/hibernation_retry.log)",
    )
    p.add_argument(
        "--date-human-readable",
        dest="date_human_readable",
        action="store_true",
        default=None,
        help="Use human-readable date format in the retry log (default: true)",
    )
    p.add_argument(
        "--date-unix",
        dest="date_human_readable",
        action="store_false",
        help="Use Unix timestamp in the retry log",
    )

    # Remediation policy
    p.add_argument(
        "--kill-budget",
        dest="kill_budget",
        type=int,
        metavar="N",
        help="Max number of distinct process names to kill (default: 3)",
    )
    p.add_argument(
        "--whitelist",
        dest="whitelist",
        nargs="+",
        metavar="CMD",
        help="Process names that must never be killed (replaces the default list)",
    )

    # Audit
    p.add_argument(
        "--audit-key",
        dest="audit_key",
        metavar="KEY",
        help="auditd rule key to search for (default: hibernate-issue)",
    )
    p.add_argument(
        "--audit-since",
        dest="audit_since",
        metavar="TS",
        help="Only consider audit events from this start time, passed to ausearch -ts (e.g. recent, boot, today)",
    )

    # Timeouts
    p.add_argument(
        "--hibernate-timeout",
        dest="hibernate_timeout",
        type=_parse_timeout,
        metavar="SECONDS",
        help="Give up on a hibernate call after this long (default: wait forever)",
    )
    p.add_argument(
        "--audit-timeout",
        dest="audit_timeout",
        type=_parse_timeout,
        metavar="SECONDS",
        help="Give up on the audit query after this long (default: wait forever)",
    )

    # Setup helpers
    p.add_argument(
        "--print-audit-rule",
        action="store_true",
        help="Print the auditd watch rule for the audit key and exit",
    )
    p.add_argument(
        "--print-systemd-unit",
        action="store_true",
        help="Print a systemd unit running this before hibernate.target and exit",
    )

    return p


AUDIT_RULE_TEMPLATE = "-w %(power_state_file)s -p w -k %(audit_key)s"

SYSTEMD_UNIT_TEMPLATE = """[Unit]
Description=Manage Hibernation Attempts
Before=hibernate.target
DefaultDependencies=no

[Service]
Type=oneshot
ExecStart=%(executable)s
Environment="LOG_FILE=%(log_file)s" "HIBERNATION_RETRY_LOG=%(retry_log)s"
RemainAfterExit=yes

[Install]
WantedBy=hibernate.target
"""


def format_audit_rule(config):
    return AUDIT_RULE_TEMPLATE % {"power_state_file": POWER_STATE_FILE, "audit_key": config.audit_key}


def format_systemd_unit(config, executable="/usr/local/bin/hibernate-retry"):
    return SYSTEMD_UNIT_TEMPLATE % {
        "executable": executable,
        "log_file": config.log_file,
        "retry_log": config.retry_log,
    }


#########################
## Collaborators
#########################

## Every call out of this program returns a tuple with an outcome tag
## rather than raising or leaving a status code around.

HibernateResult = namedtuple("HibernateResult", ("outcome", "returncode", "detail"))
AuditQueryResult = namedtuple("AuditQueryResult", ("outcome", "text"))
AuditRecord = namedtuple("AuditRecord", ("event_type", "serial", "fields"))
LookupResult = namedtuple("LookupResult", ("name", "pids"))
SignalResult = namedtuple("SignalResult", ("signalled", "failed"))


def hibernate(command=("systemctl", "hibernate"), timeout=None):
    """Ask the OS to hibernate.  Blocks until the call returns (which,
    on success, is after resume)."""
    try:
        proc = subprocess.run(list(command), capture_output=True, timeout=timeout)
    except FileNotFoundError as e:
        logging.error("hibernate command %s not available: %s" % (command[0], e))
        return HibernateResult("unavailable", None, str(e))
    except PermissionError as e:
        logging.error("not allowed to run hibernate command %s: %s" % (command[0], e))
        return HibernateResult("unavailable", None, str(e))
    except subprocess.TimeoutExpired:
        logging.error("hibernate command did not return within %s seconds" % timeout)
        return HibernateResult("timeout", None, "no return within %s seconds" % timeout)
    detail = proc.stderr.decode("utf-8", "ignore").strip()
    if proc.returncode == 0:
        return HibernateResult("success", 0, detail)
    logging.debug("hibernate command exited with %s: %s" % (proc.returncode, detail))
    return HibernateResult("failure", proc.returncode, detail)


def query_audit(key, since=None, timeout=None):
    """Fetch the raw audit events tagged with key.

    ausearch exits with 1 and says "<no matches>" on stderr when there is
    nothing to find - that's an empty result, not an error.
    """
    cmd = ["ausearch", "-k", key, "--raw"]
    if since:
        cmd.extend(["-ts", since])
    try:
        proc = subprocess.run(cmd, capture_output=True, timeout=timeout)
    except FileNotFoundError:
        logging.warning("ausearch not found - is auditd installed?")
        return AuditQueryResult("error", "")
    except subprocess.TimeoutExpired:
        logging.warning("ausearch did not return within %s seconds" % timeout)
        return AuditQueryResult("error", "")
    except OSError as e:
        logging.warning("could not run ausearch: %s" % e)
        return AuditQueryResult("error", "")
    text = proc.stdout.decode("utf-8", "ignore")
    if proc.returncode == 0 and text.strip():
        return AuditQueryResult("found", text)
    stderr = proc.stderr.decode("utf-8", "ignore")
    if proc.returncode in (0, 1) and ("no matches" in stderr or not text.strip()):
        return AuditQueryResult("empty", "")
    logging.warning("ausearch exited with %s: %s" % (proc.returncode, stderr.strip()))
    return AuditQueryResult("error", "")


## with auditd's name_format set, every line starts with node=<name>
_record_re = re.compile(r"^(?:node=\S+\s+)?type=(\S+) msg=audit\(\d+(?:\.\d+)?:(\d+)\):\s*(.*)$")
_field_re = re.compile(r"""(\w+)=("[^"]*"|'[^']*'|\S+)""")
_hex_re = re.compile(r"^(?:[0-9A-F]{2})+$")

## auditd logs these unquoted and hex encoded when they contain spaces,
## quotes or other funny characters
UNTRUSTED_STRING_FIELDS = ("ocomm", "comm", "exe", "name", "proctitle")


def _decode_field(key, value):
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    if key in UNTRUSTED_STRING_FIELDS and _hex_re.match(value):
        return bytes.fromhex(value).decode("utf-8", "ignore")
    return value


def parse_audit_records(text):
    """Parse raw ausearch output into AuditRecord tuples.

    Lines not looking like "type=X msg=audit(TS:SERIAL): ..." are skipped.
    """
    records = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        match = _record_re.match(line)
        if not match:
            logging.debug("skipping unparseable audit line: %r" % line)
            continue
        event_type, serial, rest = match.groups()
        fields = {}
        for key, value in _field_re.findall(rest):
            fields[key] = _decode_field(key, value)
        records.append(AuditRecord(event_type, int(serial), fields))
    return records


def extract_blocker_names(records):
    """Names of the processes recorded as the object of a power state
    write, sorted and deduplicated (like sort | uniq)."""
    names = set()
    for record in records:
        if record.event_type != "OBJ_PID":
            continue
        name = record.fields.get("ocomm")
        if name:
            names.add(name)
    return sorted(names)


def read_comm(pid):
    """Command name of pid from /proc/<pid>/stat, or None if it's gone."""
    try:
        with open("/proc/%s/stat" % pid, "rb") as stat_file:
            stats_tx = stat_file.read().decode("utf-8", "ignore")
    except (FileNotFoundError, ProcessLookupError, PermissionError):
        return None
    ## the command name may itself contain parentheses and spaces
    if "(" not in stats_tx or ")" not in stats_tx:
        return None
    return stats_tx.split("(", 1)[1].rsplit(")", 1)[0]


def find_pids_by_exact_name(name):
    """All live pids whose command name is exactly name, like pgrep -x.

    PID 1 and our own pid are never returned.
    """
    own_pid = getpid()
    pids = set()
    for entry in os.listdir("/proc"):
        if not entry.isdigit():
            continue
        pid = int(entry)
        if pid == 1:
            continue
        if read_comm(pid) != name:
            continue
        if pid == own_pid:
            logging.error("Oups.  Own pid matches blocking process name %s.  Skipping it." % name)
            continue
        pids.add(pid)
    return LookupResult(name, frozenset(pids))


def terminate(pids):
    """SIGKILL all pids.  Fire and forget - a pid that is already gone
    or that we're not allowed to touch is reported, not raised."""
    signalled = []
    failed = []
    for pid in sorted(pids):
        try:
            kill(pid, signal.SIGKILL)
            signalled.append(pid)
        except ProcessLookupError:
            logging.debug("pid %s exited before it could be killed" % pid)
            failed.append(pid)
        except PermissionError:
            logging.warning("not permitted to kill pid %s" % pid)
            failed.append(pid)
        except OSError as e:
            logging.warning("could not kill pid %s: %s" % (pid, e))
            failed.append(pid)
    return SignalResult(tuple(signalled), tuple(failed))


#########################
## Retry log
#########################


def get_date_string(human_readable=True):
    if human_readable:
        now = datetime.now()
        return now.strftime("%Y-%m-%d %H:%M:%S") + f".{now.microsecond // 1000:03d}"
    else:
        return str(time.time())


def ignore_failure(method):
    def _try_except_pass(*args, **kwargs):
        try:
            method(*args, **kwargs)
        except Exception:
            logging.critical("Exception ignored", exc_info=True)

    return _try_except_pass


class RetryLog:
    """The append-only narrative of one run.  One line per event, each
    line tagged with the phase that produced it, so the sequence can be
    reconstructed afterwards without anything else at hand."""

    def __init__(self, path, date_human_readable=True):
        self.path = path
        self.date_human_readable = date_human_readable

    def write(self, phase, message):
        logging.info("%s - %s" % (phase, message))
        self._append("%s - %s - %s\n" % (get_date_string(self.date_human_readable), phase, message))

    @ignore_failure
    def _append(self, line):
        with open(self.path, "ab") as logfile:
            logfile.write(line.encode("utf-8"))


#########################
## Remediation
#########################


class RemediationEngine:
    """Finds the processes the audit log blames for a failed hibernation
    and kills a bounded number of them.

    The budget counts distinct process names, not pids - killing all
    five chrome processes is one kill.
    """

    def __init__(
        self,
        config,
        retry_log,
        query=None,
        lookup=None,
        killer=None,
    ):
        self.config = config
        self.retry_log = retry_log
        self.query = query or query_audit
        self.lookup = lookup or find_pids_by_exact_name
        self.killer = killer or terminate
        self.kill_count = 0

    def candidates(self):
        result = self.query(self.config.audit_key, self.config.audit_since, self.config.audit_timeout)
        if result.outcome != "found":
            logging.debug("audit query outcome: %s" % result.outcome)
            return []
        names = extract_blocker_names(parse_audit_records(result.text))
        logging.debug("blocking process candidates: %s" % names)
        return names

    def remediate(self):
        """Returns the number of distinct process names killed.  Never raises."""
        self.kill_count = 0
        try:
            self._remediate()
        except Exception:
            logging.critical("remediation aborted by unexpected error", exc_info=True)
        return self.kill_count

    def _remediate(self):
        log = self.retry_log.write
        log("remediation", "analyzing audit logs for blocking processes (key %s)" % self.config.audit_key)
        names = self.candidates()
        if not names:
            log("remediation", "no blocking processes found in the audit log")
            return

        for name in names:
            if self.kill_count >= self.config.kill_budget:
                log("remediation", "reached max kill count limit (%s), stopping further kills" % self.config.kill_budget)
                break
            if name in self.config.whitelist:
                log("remediation", "process %s is whitelisted and will not be killed" % name)
                continue
            pids = self.lookup(name).pids
            if not pids:
                log("remediation", "no running process named %s, nothing killed" % name)
                continue
            result = self.killer(pids)
            if result.failed:
                logging.debug("could not signal %s: %s" % (name, list(result.failed)))
            log("remediation", "killed %s with PIDs: %s" % (name, " ".join(str(pid) for pid in sorted(pids))))
            self.kill_count += 1


#########################
## Controller
#########################


class HibernationController:
    """Hibernate; on failure remediate and retry exactly once."""

    def __init__(self, config, retry_log=None, engine=None, hibernator=None):
        self.config = config
        self.retry_log = retry_log or RetryLog(config.retry_log, config.date_human_readable)
        self.engine = engine or RemediationEngine(config, self.retry_log)
        self.hibernator = hibernator or hibernate

    def attempt(self, attempt_number):
        phase = "attempt %d" % attempt_number
        result = self.hibernator(self.config.hibernate_command, self.config.hibernate_timeout)
        if result.outcome == "success":
            if attempt_number == 1:
                self.retry_log.write(phase, "hibernation successful")
            else:
                self.retry_log.write(phase, "hibernation successful on second attempt")
            return True
        reason = result.outcome
        if result.returncode is not None:
            reason = "%s, exit status %s" % (reason, result.returncode)
        if result.detail:
            reason = "%s: %s" % (reason, result.detail)
        if attempt_number == 1:
            self.retry_log.write(phase, "hibernation failed (%s), analyzing logs" % reason)
        else:
            self.retry_log.write(phase, "second hibernation attempt also failed (%s)" % reason)
        return False

    def run(self):
        """Returns True if the host got hibernated."""
        self.retry_log.write("attempt 1", "attempting hibernation")
        if self.attempt(1):
            return True

        killed = self.engine.remediate()
        if killed > 0:
            self.retry_log.write("attempt 2", "retrying hibernation after killing %s processes" % killed)
            return self.attempt(2)

        self.retry_log.write(
            "retry",
            "no killable processes found, or no process was killed. No second hibernation attempt made.",
        )
        return False


#########################
## Entry point
#########################


def setup_logging(config):
    logging.root.setLevel(logging.DEBUG if config.debug_logging else logging.INFO)
    logging.basicConfig(format="%(levelname)s: %(message)s")
    try:
        handler = logging.FileHandler(config.log_file)
    except OSError as e:
        logging.warning("cannot write general log %s: %s" % (config.log_file, e))
        return None
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logging.root.addHandler(handler)
    return handler


def main(argv=None):
    """Main entry point for hibernate-retry."""
    p = create_argument_parser()
    args = p.parse_args(argv)

    config = init_config(args)

    if args.print_audit_rule:
        print(format_audit_rule(config))
        return 0
    if args.print_systemd_unit:
        print(format_systemd_unit(config), end="")
        return 0

    handler = setup_logging(config)
    try:
        hibernated = HibernationController(config).run()
    finally:
        if handler:
            logging.root.removeHandler(handler)
            handler.close()
    return 0 if hibernated else 1


if __name__ == "__main__":
    sys.exit(main())
