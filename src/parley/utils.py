import copy
import os

import yaml

from .logger import get_logger

logger = get_logger(__name__)

# Environment variable naming the user config file
CONFIG_ENV_VAR = "PARLEY_CONFIG"


class ConfigManager:
    """Manages application configuration settings.

    Defaults come from config_schema.yaml; a user YAML file is validated
    against the schema and merged on top. Each application root constructs
    its own instance.
    """

    def __init__(self, schema_path=None, config_path=None):
        """Load the schema defaults, then the user config if one is given."""
        self.schema = self.load_config_schema(schema_path)
        self.config = self.load_default_config()
        self.config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
        if self.config_path:
            self.load_user_config(self.config_path)

    @classmethod
    def from_dict(cls, overrides, schema_path=None):
        """Build a manager from in-memory overrides (validated like a file)."""
        manager = cls(schema_path=schema_path)
        manager.apply_overrides(overrides)
        return manager

    def get_config_section(self, *keys):
        """Get a specific section of the configuration."""
        section = self.config
        if not section:
            return {}
        for key in keys:
            if isinstance(section, dict) and key in section:
                section = section[key]
            else:
                return {}
        return section

    def get_config_value(self, *keys):
        """Get a specific configuration value using nested keys."""
        value = self.config
        if not value:
            return None
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return None
        return value

    def set_config_value(self, value, *keys):
        """Set a specific configuration value using nested keys."""
        config = self.config
        for key in keys[:-1]:
            if key not in config or not isinstance(config[key], dict):
                config[key] = {}
            config = config[key]
        config[keys[-1]] = value

    @staticmethod
    def load_config_schema(schema_path=None):
        """Load the configuration schema from a YAML file."""
        if schema_path is None:
            base_dir = os.path.dirname(os.path.abspath(__file__))
            schema_path = os.path.join(base_dir, 'config_schema.yaml')

        with open(schema_path, 'r', encoding='utf-8') as file:
            schema = yaml.safe_load(file)
        return schema or {}

    def load_default_config(self):
        """Load default configuration values from the schema."""
        def extract_value(item):
            if isinstance(item, dict):
                if 'value' in item:
                    return copy.deepcopy(item['value'])
                else:
                    return {k: extract_value(v) for k, v in item.items()}
            return item

        config = {}
        for category, settings in self.schema.items():
            config[category] = extract_value(settings)
        return config

    def _validate_config_value(self, value, schema_item, path):
        """Validate a config value against its schema definition."""
        if not isinstance(schema_item, dict) or 'type' not in schema_item:
            # Not a leaf node, skip validation
            return True

        expected_type = schema_item['type']
        type_map = {
            'str': str,
            'int': int,
            'float': (int, float),
            'bool': bool
        }

        # None is only valid where the default is None
        if value is None:
            if schema_item.get('value') is None:
                return True
            logger.warning(f"Config '{path}' must not be empty. Using default.")
            return False

        if expected_type in type_map:
            expected_python_type = type_map[expected_type]
            # bool is an int subclass; only accept it where a bool is expected
            if isinstance(value, bool) and expected_type != 'bool':
                logger.warning(f"Config '{path}' should be {expected_type}, got bool. Using default.")
                return False
            if not isinstance(value, expected_python_type):
                logger.warning(f"Config '{path}' should be {expected_type}, got {type(value).__name__}. Using default.")
                return False

        if 'options' in schema_item and value not in schema_item['options']:
            logger.warning(f"Config '{path}' value '{value}' not in allowed options {schema_item['options']}. Using default.")
            return False

        return True

    def _validate_config_section(self, user_section, schema_section, path=""):
        """Recursively validate a config section against schema."""
        if not isinstance(schema_section, dict) or not isinstance(user_section, dict):
            return

        for key, schema_value in schema_section.items():
            current_path = f"{path}.{key}" if path else key

            if key not in user_section:
                continue

            user_value = user_section[key]

            # If schema_value has 'type', it's a leaf node - validate it
            if isinstance(schema_value, dict) and 'type' in schema_value:
                if not self._validate_config_value(user_value, schema_value, current_path):
                    # Reset to default value
                    user_section[key] = copy.deepcopy(schema_value.get('value'))
            elif isinstance(schema_value, dict) and isinstance(user_value, dict):
                self._validate_config_section(user_value, schema_value, current_path)

    def apply_overrides(self, overrides):
        """Validate overrides and deep-merge them into the current config."""
        def deep_update(source, updates):
            for key, value in updates.items():
                if isinstance(value, dict) and isinstance(source.get(key), dict):
                    deep_update(source[key], value)
                else:
                    source[key] = value

        if not overrides:
            return
        overrides = copy.deepcopy(overrides)
        self._validate_config_section(overrides, self.schema)
        deep_update(self.config, overrides)

    def load_user_config(self, config_path):
        """Load user configuration and merge with default config."""
        if not config_path or not os.path.isfile(config_path):
            logger.warning(f"Config file not found: {config_path}. Using default configuration.")
            return

        try:
            with open(config_path, 'r', encoding='utf-8') as file:
                user_config = yaml.safe_load(file)
        except yaml.YAMLError as e:
            logger.error(f"Error in configuration file {config_path}: {e}. Using default configuration.")
            return

        if user_config is None:
            return
        if not isinstance(user_config, dict):
            logger.error(f"Configuration file {config_path} must contain a mapping. Using default configuration.")
            return
        self.apply_overrides(user_config)

    def reload_config(self):
        """Reload the configuration from the file."""
        self.config = self.load_default_config()
        if self.config_path:
            self.load_user_config(self.config_path)
