import os
from urllib.parse import urlparse

DEFAULT_HOSTING_ROOT = "https://github.com/openssl/openssl"


def get_config_path(custom_path=None):
    if custom_path:
        return custom_path
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return os.path.join(xdg_config_home, "gitlinks", "config.yaml")


def read_config(custom_path=None):
    import yaml

    config_path = get_config_path(custom_path)
    try:
        with open(config_path, "r", encoding="utf-8") as file:
            return yaml.safe_load(file) or {}
    except FileNotFoundError:
        return {}
    except OSError as err:
        raise ValueError(f"Cannot read config file {config_path}: {err}") from err
    except yaml.YAMLError as err:
        raise ValueError(f"Cannot parse config file {config_path}: {err}") from err


def load_settings(custom_path=None) -> dict:
    """
    Read the config file and fill in defaults.
    Raises ValueError for keys with the wrong type.
    """
    config = read_config(custom_path)
    if not isinstance(config, dict):
        raise ValueError(f"Config file must hold a mapping: {get_config_path(custom_path)}")

    hosting_root = config.get("hosting_root") or DEFAULT_HOSTING_ROOT
    if not isinstance(hosting_root, str):
        raise ValueError("hosting_root must be a string")

    remote = config.get("remote")
    if remote is not None and not isinstance(remote, str):
        raise ValueError("remote must be a string")

    abbrev = config.get("abbrev")
    if abbrev is not None and (
        isinstance(abbrev, bool) or not isinstance(abbrev, int) or abbrev < 4
    ):
        raise ValueError("abbrev must be an integer of at least 4")

    return {
        "hosting_root": hosting_root.rstrip("/"),
        "remote": remote,
        "abbrev": abbrev,
    }


def get_host_and_repo(url: str) -> tuple[str, str]:
    """Split a remote or hosting URL into (host, owner/repo)."""
    if url.startswith("git@"):  # git@github.com:owner/repo.git
        host_path = url[4:]
        host, _, path = host_path.partition(":")
    elif "://" not in url and ":" in url.split("/", 1)[0]:  # github.com:owner/repo
        host, _, path = url.partition(":")
        host = host.rpartition("@")[2]
    else:
        parsed = urlparse(url)
        host = parsed.hostname or ""
        path = parsed.path.lstrip("/")
    path = path.rstrip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return host.lower(), path.lower()
