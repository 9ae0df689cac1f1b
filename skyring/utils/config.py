# skyring/utils/config.py
import os

import yaml

DEFAULT_CONFIG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    "config",
    "defaults.yaml",
)

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


class AttrDict(dict):
    """Dict that also supports attribute access: cfg.sky and cfg['sky'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e

    def __setattr__(self, key, value):
        self[key] = value


def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj


def _env_bool(name, current):
    raw = os.getenv(name)
    if raw is None:
        return current
    s = raw.strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    return current


def _env_int(name, current):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return current
    try:
        return int(raw)
    except ValueError:
        return current


def load_config(path=None):
    """
    Load YAML config (default: config/defaults.yaml, or $SKYRING_CONFIG) and
    apply environment overrides:
      - SKYRING_SECOND_ORDER_DEFAULT  -> sky.second_order_default
      - SKYRING_DEFAULT_TZ            -> sky.default_timezone
      - SKYRING_RL_SKY_PER_MIN        -> rate_limits.sky_per_min
    Returns an AttrDict for convenient access.
    """
    path = path or os.getenv("SKYRING_CONFIG") or DEFAULT_CONFIG_PATH
    data = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    sky = data.setdefault("sky", {})
    sky.setdefault("second_order_default", True)
    sky.setdefault("default_timezone", "UTC")
    sky.setdefault("fallback_reason", "second_order_disabled")
    sky["second_order_default"] = _env_bool("SKYRING_SECOND_ORDER_DEFAULT", sky["second_order_default"])
    sky["default_timezone"] = os.getenv("SKYRING_DEFAULT_TZ") or sky["default_timezone"]

    rl = data.setdefault("rate_limits", {})
    rl.setdefault("sky_per_min", 120)
    rl.setdefault("health_per_min", 600)
    rl["sky_per_min"] = _env_int("SKYRING_RL_SKY_PER_MIN", rl["sky_per_min"])

    return _to_attr(data)
