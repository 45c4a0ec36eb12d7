"""
Configuration management for the CHIP-8 Emulator.

This module provides tools for loading, validating, and managing configuration
settings. It supports JSON and YAML files and validates them before merging
them over the defaults.
"""

import os
import json
import logging
import copy
from typing import Dict, Any, Optional, List
import yaml

from ..constants import DEFAULT_CLOCK_HZ, TIMER_RATE_HZ, DEFAULT_KEYMAP, MAX_HISTORY_SIZE, TRACE_FORMATS, NUM_KEYS
from ..system_configs import MACHINE_CONFIGS

logger = logging.getLogger("Chip8Emulator.ConfigManager")

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

class ConfigManager:
    """
    Configuration management for the CHIP-8 Emulator.

    Handles loading, validating, and providing access to configuration
    settings, with dotted-path access to nested keys.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to configuration file (None for default values)
        """
        # Default configuration
        self.defaults = {
            "machine": "chip8",
            "cpu": {
                "clock_hz": DEFAULT_CLOCK_HZ,
                "random_seed": None
            },
            "timers": {
                "rate_hz": TIMER_RATE_HZ
            },
            "display": {
                "pixel_scale": 10,
                "on_color": "#e0e0ff",
                "off_color": "#1a1a22"
            },
            "keymap": dict(DEFAULT_KEYMAP),
            "trace": {
                "enabled": False,
                "max_history": MAX_HISTORY_SIZE,
                "format": "json"
            },
            "logging": {
                "level": "INFO",
                "file": None
            }
        }

        # Current configuration (copy of defaults initially)
        self.config = copy.deepcopy(self.defaults)

        if config_path:
            self.load_config(config_path)

        logger.debug("ConfigManager initialized")

    def load_config(self, config_path: str) -> bool:
        """
        Load configuration from file.

        Args:
            config_path: Path to configuration file

        Returns:
            True if configuration loaded successfully, False otherwise
        """
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found: {config_path}")
            return False

        _, ext = os.path.splitext(config_path)
        ext = ext.lower()

        try:
            if ext == '.json':
                with open(config_path, 'r') as f:
                    user_config = json.load(f)
            elif ext in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    user_config = yaml.safe_load(f) or {}
            else:
                logger.error(f"Unsupported configuration format: {ext}")
                return False
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error(f"Error loading configuration: {e}")
            return False

        if not isinstance(user_config, dict):
            logger.error(f"Configuration root must be a mapping: {config_path}")
            return False

        validation_errors = self.validate_config(user_config)
        if validation_errors:
            for error in validation_errors:
                logger.error(f"Configuration validation error: {error}")
            return False

        self._merge_config(user_config)

        logger.info(f"Configuration loaded from {config_path}")
        return True

    def _merge_config(self, user_config: Dict[str, Any], path: str = "",
                      target: Optional[Dict[str, Any]] = None) -> None:
        """
        Merge user configuration with the current one, tracking modified keys.

        Args:
            user_config: User configuration dictionary
            path: Current key path for tracking (internal use)
            target: Dictionary being merged into (internal use)
        """
        if target is None:
            target = self.config

        for key, value in user_config.items():
            current_path = f"{path}.{key}" if path else key

            # The keymap is replaced as a whole rather than merged
            if isinstance(value, dict) and isinstance(target.get(key), dict) and current_path != "keymap":
                self._merge_config(value, current_path, target[key])
            else:
                target[key] = copy.deepcopy(value)

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate configuration against schema.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if "machine" in config and config["machine"] not in MACHINE_CONFIGS:
            valid_machines = ", ".join(MACHINE_CONFIGS.keys())
            errors.append(f"Invalid machine type: {config['machine']}. Valid options: {valid_machines}")

        cpu_config = config.get("cpu", {})
        if "clock_hz" in cpu_config:
            clock = cpu_config["clock_hz"]
            if isinstance(clock, bool) or not isinstance(clock, int) or clock <= 0:
                errors.append(f"Invalid cpu.clock_hz: {clock}. Must be a positive integer")
        if "random_seed" in cpu_config:
            seed = cpu_config["random_seed"]
            if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
                errors.append(f"Invalid cpu.random_seed: {seed}. Must be an integer or null")

        timer_config = config.get("timers", {})
        if "rate_hz" in timer_config:
            rate = timer_config["rate_hz"]
            if isinstance(rate, bool) or not isinstance(rate, (int, float)) or rate <= 0:
                errors.append(f"Invalid timers.rate_hz: {rate}. Must be a positive number")

        display_config = config.get("display", {})
        if "pixel_scale" in display_config:
            scale = display_config["pixel_scale"]
            if isinstance(scale, bool) or not isinstance(scale, int) or scale < 1:
                errors.append(f"Invalid display.pixel_scale: {scale}. Must be a positive integer")

        if "keymap" in config:
            keymap = config["keymap"]
            if not isinstance(keymap, dict):
                errors.append("Invalid keymap: must be a mapping of host key to keypad index")
            else:
                for host_key, index in keymap.items():
                    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < NUM_KEYS:
                        errors.append(f"Invalid keymap entry {host_key!r}: {index}. "
                                      f"Must be an integer between 0 and {NUM_KEYS - 1}")

        trace_config = config.get("trace", {})
        if "enabled" in trace_config and not isinstance(trace_config["enabled"], bool):
            errors.append(f"Invalid trace.enabled: {trace_config['enabled']}. Must be a boolean")
        if "max_history" in trace_config:
            size = trace_config["max_history"]
            if isinstance(size, bool) or not isinstance(size, int) or size < 1:
                errors.append(f"Invalid trace.max_history: {size}. Must be a positive integer")
        if "format" in trace_config and trace_config["format"] not in TRACE_FORMATS:
            errors.append(f"Invalid trace.format: {trace_config['format']}. "
                          f"Valid options: {', '.join(TRACE_FORMATS)}")

        log_config = config.get("logging", {})
        if "level" in log_config and log_config["level"] not in LOG_LEVELS:
            errors.append(f"Invalid logging.level: {log_config['level']}. Valid options: {', '.join(LOG_LEVELS)}")

        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key path.

        Args:
            key: Configuration key path (e.g., 'cpu.clock_hz')
            default: Default value if key not found

        Returns:
            Configuration value or default if not found
        """
        value = self.config
        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value by key path.

        Args:
            key: Configuration key path (e.g., 'cpu.clock_hz')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

        logger.debug(f"Configuration updated: {key} = {value}")

    def reset(self, key: Optional[str] = None) -> None:
        """
        Reset configuration to defaults.

        Args:
            key: Key path to reset (None for all)
        """
        if key is None:
            self.config = copy.deepcopy(self.defaults)
            logger.info("Configuration reset to defaults")
            return

        keys = key.split('.')
        config = self.config
        for k in keys[:-1]:
            if k not in config:
                return
            config = config[k]

        config[keys[-1]] = self._get_default_value(keys)
        logger.info(f"Configuration key reset to default: {key}")

    def _get_default_value(self, keys: List[str]) -> Any:
        value = self.defaults
        for k in keys:
            if k not in value:
                return None
            value = value[k]
        return copy.deepcopy(value)

    def save_config(self, config_path: str, format: str = 'json') -> bool:
        """
        Save current configuration to file.

        Args:
            config_path: Path to output file
            format: Output format ('json' or 'yaml')

        Returns:
            True if saved successfully, False otherwise
        """
        if format.lower() not in ['json', 'yaml', 'yml']:
            logger.error(f"Unsupported configuration format: {format}")
            return False

        try:
            directory = os.path.dirname(config_path)
            if directory and not os.path.exists(directory):
                os.makedirs(directory)

            with open(config_path, 'w') as f:
                if format.lower() == 'json':
                    json.dump(self.config, f, indent=2)
                else:
                    yaml.safe_dump(self.config, f, default_flow_style=False)

            logger.info(f"Configuration saved to {config_path}")
            return True

        except OSError as e:
            logger.error(f"Error saving configuration: {e}")
            return False

    def load_from_dict(self, config_dict: Dict[str, Any]) -> bool:
        """
        Load configuration from dictionary.

        Args:
            config_dict: Configuration dictionary

        Returns:
            True if loaded successfully, False otherwise
        """
        validation_errors = self.validate_config(config_dict)
        if validation_errors:
            for error in validation_errors:
                logger.error(f"Configuration validation error: {error}")
            return False

        self._merge_config(config_dict)

        logger.debug("Configuration loaded from dictionary")
        return True

    def get_machine_config(self) -> Dict[str, Any]:
        """
        Get machine configuration with the user's clock and timer overrides.

        Returns:
            Machine configuration dictionary
        """
        machine = copy.deepcopy(MACHINE_CONFIGS.get(self.get("machine", "chip8"), {}))
        machine["cpu_freq_hz"] = self.get("cpu.clock_hz", DEFAULT_CLOCK_HZ)
        machine["timer_freq_hz"] = self.get("timers.rate_hz", TIMER_RATE_HZ)
        machine["random_seed"] = self.get("cpu.random_seed")
        machine["keymap"] = dict(self.get("keymap", DEFAULT_KEYMAP))
        return machine
