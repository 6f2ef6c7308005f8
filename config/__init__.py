import os
import json
from pathlib import Path
from dotenv import load_dotenv
from .logging_config import setup_app_logging
import logging

# Load environment variables from .env file
load_dotenv()

# Get the config directory path (where this file is located)
CONFIG_DIR = Path(__file__).parent

PROJECT_ROOT = CONFIG_DIR.parent

# Load configuration from config.json
config_path = CONFIG_DIR / 'config.json'
with open(config_path, 'r', encoding='utf-8') as f:
    CONFIG = json.load(f)

CONFIG['project_root'] = str(PROJECT_ROOT)

# --- System Prompt Loading ---
system_prompt_path = CONFIG_DIR / 'system_prompt.txt'
try:
    with open(system_prompt_path, 'r', encoding='utf-8') as f:
        CONFIG['system_prompt'] = f.read().strip()
except FileNotFoundError:
    raise FileNotFoundError(
        f"System prompt file not found: {system_prompt_path}\n"
        f"Please ensure system_prompt.txt exists in the config directory."
    )

# Environment variables. Keys for the non-default providers are optional and
# only checked when a request selects that provider.
ENV = {
    'GROQ_API_KEY': os.getenv('GROQ_API_KEY'),
    'TODOIST_API_KEY': os.getenv('TODOIST_API_KEY'),
    'OPENAI_API_KEY': os.getenv('OPENAI_API_KEY'),
    'CARTESIA_API_KEY': os.getenv('CARTESIA_API_KEY'),
    'TASK_BACKEND': os.getenv('TASK_BACKEND', 'todoist').lower(),
}

REQUIRED_ENV = ['GROQ_API_KEY', 'TODOIST_API_KEY']


def validate_config():
    """Validate that all required environment variables and configuration settings are present.

    Only the keys needed by the default (free) request path are required at import time:
    the Groq key for transcription and language understanding, and the Todoist token for
    the task tools. The Todoist token is not required when the in-memory mock backend is
    selected with TASK_BACKEND=mock.
    """
    required = list(REQUIRED_ENV)
    if ENV['TASK_BACKEND'] == 'mock':
        required.remove('TODOIST_API_KEY')

    missing_env_vars = [key for key in required if not ENV.get(key)]
    if missing_env_vars:
        raise EnvironmentError(
            f"Missing required environment variables: {', '.join(missing_env_vars)}\n"
            f"Please check your .env file."
        )

    for section in ['llm', 'transcription', 'synthesis', 'task_api', 'pricing']:
        if section not in CONFIG:
            raise ValueError(f"Missing configuration section: {section}")

    default_provider = CONFIG['llm'].get('default_provider')
    if default_provider not in CONFIG['llm'].get('providers', {}):
        raise ValueError(f"Default LLM provider '{default_provider}' has no provider configuration")

# Validate configuration on module import
validate_config()

# --- Helper function to get config value from CONFIG or environment variable ---
def get_config_value(json_keys: list, env_var_name: str, default_value: any = None):
    """
    Retrieves a configuration value.
    Priority:
    1. Environment variable (if env_var_name is provided and variable is set).
    2. Value from CONFIG dictionary (using json_keys).
    3. default_value.
    """
    if env_var_name:
        env_value = os.getenv(env_var_name)
        if env_value is not None:
            if isinstance(default_value, bool):
                if env_value.lower() == 'true': return True
                if env_value.lower() == 'false': return False
            elif isinstance(default_value, int):
                try:
                    return int(env_value)
                except ValueError:
                    pass # Fall through to JSON or default if not a valid int
            return env_value

    current_level = CONFIG
    try:
        for key in json_keys:
            current_level = current_level[key]
        if isinstance(current_level, (str, int, bool, float, list, dict)):
            return current_level
    except (KeyError, TypeError):
        pass

    return default_value

# --- Logging Configuration ---
# Environment variables take precedence over config.json.
CONFIG['logging'] = {
    'level': get_config_value(['logging', 'level'], 'LOG_LEVEL', 'INFO'),
    'file_path': get_config_value(['logging', 'file_path'], 'LOG_FILE_PATH', 'logs/swift_sage.log'),
    'max_bytes': get_config_value(['logging', 'max_bytes'], 'LOG_MAX_BYTES', 5*1024*1024), # 5MB
    'backup_count': get_config_value(['logging', 'backup_count'], 'LOG_BACKUP_COUNT', 3),
    'date_format': get_config_value(
        ['logging', 'date_format'],
        'LOG_DATE_FORMAT',
        '%Y-%m-%d %H:%M:%S'
    )
}

setup_app_logging(config=CONFIG.get('logging'))

config_init_logger = logging.getLogger(__name__)
config_init_logger.info("[config_init] Logging initialized from config/__init__.py using setup_app_logging.")
