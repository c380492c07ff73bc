import os


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except ValueError:
        return default


def _str_env(name: str, default: str) -> str:
    return str(os.getenv(name, default)).strip()


DEFAULT_BLOCK_SIZE = _int_env("MIRRORMAP_BLOCK_SIZE", 4)
DEFAULT_DATABASE = _str_env("MIRRORMAP_DATABASE", "postgres")
DATABASE_URL = _str_env("MIRRORMAP_DATABASE_URL", "")
DEFAULT_OUTPUT_PATH = _str_env("MIRRORMAP_OUTPUT", "~/movemirrors.cfg")
REQUIRED_OS_USER = _str_env("MIRRORMAP_REQUIRED_USER", "gpadmin")
SYSTEM_FILESPACE = _str_env("MIRRORMAP_SYSTEM_FILESPACE", "pg_system")
LOG_LEVEL = _str_env("MIRRORMAP_LOG_LEVEL", "INFO")

# Coordinator (master) rows carry this content id and never take part in mirroring
COORDINATOR_CONTENT = -1
FILESPACE_ORDER_KEY = "filespaceOrder"
