import copy
import json
import logging
import os

DEFAULT_CONFIG = {
    'db_path': None,   # None -> ~/.mamatrack/mamatrack.db
    'reminders': {
        'vaccination_lookahead': 3,   # reminders for the next N KEPI slots
        'anc_visit_count': 2,         # reminders for the first N ANC visits
        'ifas_refill_days': 30,
    },
    'clock': {
        'use_ntp': False,
        'ntp_server': 'pool.ntp.org',
        'timeout': 3,
    },
    'llm': {
        'mode': 'off',                # 'off' -> static tips only, 'http' -> chat endpoint
        'base_url': 'https://api.openai.com/v1',
        'model': 'gpt-4o-mini',
        'api_key': '',
        'timeout': 60,
    },
}

_ENV_OVERRIDES = {
    'OPENAI_API_KEY': 'api_key',
    'OPENAI_API_BASE': 'base_url',
    'OPENAI_MODEL': 'model',
    'LLM_MODE': 'mode',
}


def config_dir():
    base = os.path.join(os.path.expanduser('~'), '.mamatrack')
    os.makedirs(base, exist_ok=True)
    return base


def _config_path():
    return os.path.join(config_dir(), 'mamatrack_config.json')


def _merge(defaults: dict, values: dict) -> dict:
    out = copy.deepcopy(defaults)
    for key, val in values.items():
        if isinstance(out.get(key), dict):
            if isinstance(val, dict):
                out[key] = _merge(out[key], val)
            else:
                logging.error(f"[MamaTrack] Config section {key!r} is not an object, using defaults")
        else:
            out[key] = val
    return out


def _apply_env(cfg: dict) -> dict:
    for env_name, key in _ENV_OVERRIDES.items():
        val = os.getenv(env_name)
        if val:
            cfg['llm'][key] = val.rstrip('/') if key == 'base_url' else val
    return cfg


def load_config(path: str = None) -> dict:
    """Read the JSON config; missing keys fall back to DEFAULT_CONFIG."""
    path = path or _config_path()
    if not os.path.exists(path):
        return _apply_env(copy.deepcopy(DEFAULT_CONFIG))
    try:
        with open(path, 'r', encoding='utf-8') as f:
            stored = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logging.error(f"[MamaTrack] Config {path} unreadable, using defaults: {e}")
        stored = {}
    if not isinstance(stored, dict):
        logging.error(f"[MamaTrack] Config {path} unreadable, using defaults: not a JSON object")
        stored = {}
    return _apply_env(_merge(DEFAULT_CONFIG, stored))


def save_config(cfg: dict, path: str = None):
    path = path or _config_path()
    # the API key never goes to disk
    to_store = copy.deepcopy(cfg)
    to_store.get('llm', {}).pop('api_key', None)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(to_store, f, ensure_ascii=False, indent=2)


def default_db_path(cfg: dict) -> str:
    return cfg.get('db_path') or os.path.join(config_dir(), 'mamatrack.db')
