"""
Configuration management for the heart-disease analysis.

This module provides the configuration object passed into the pipeline,
built from default values, optional overrides and configuration files.
"""

import json
import logging
from typing import Dict, List, Optional, Any
from copy import deepcopy
import yaml

# Set up logging
logger = logging.getLogger(__name__)


CATEGORICAL_COLUMNS = ['sex', 'cp', 'fbs', 'restecg', 'exang', 'slope', 'ca', 'thal']

LINKAGE_METHODS = ('single', 'complete', 'average', 'weighted', 'centroid', 'median', 'ward')

LOG_LEVELS = ('debug', 'info', 'warning', 'error', 'critical')


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_float(value: Any) -> Optional[float]:
    """
    Convert a value to a float.

    Args:
        value: Value to convert

    Returns:
        Float value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def to_list(value: Any, separator: str = ',') -> Optional[List[str]]:
    """
    Convert a value to a list.

    Args:
        value: Value to convert
        separator: Separator for string values

    Returns:
        List value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, (list, tuple)):
        return list(value)

    if isinstance(value, str):
        return [item.strip() for item in value.split(separator) if item.strip()]

    return None


def _read_config_file(filepath: str) -> Dict[str, Any]:
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            return json.load(f) or {}
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    else:
        raise ValueError(f"Unsupported file format: {filepath}")


class Config:
    """
    Configuration for one analysis run.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._config = {}

        # Load configuration
        self.load_config(overrides)

    @classmethod
    def from_file(cls, filepath: str) -> 'Config':
        """
        Create a configuration from a JSON or YAML file.

        Args:
            filepath: Path to the configuration file

        Returns:
            Config instance
        """
        return cls(_read_config_file(filepath))

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from defaults and overrides.

        Args:
            overrides: Optional configuration overrides
        """
        # Start with default configuration
        config = self._get_defaults()

        # Apply overrides
        if overrides:
            config = self._apply_overrides(config, overrides)

        # Normalise and check values
        config = self._coerce_values(config)
        self._validate(config)

        # Store configuration
        self._config = config

        logger.debug("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        """
        Get default configuration values.

        Returns:
            Default configuration
        """
        return {
            # Input
            'data': {
                'path': 'heart-disease.csv',
                'target-column': 'target',
                'categorical-columns': list(CATEGORICAL_COLUMNS)
            },

            # Dimensionality reduction
            'pca': {
                'n-comps': 4,
                'tolerance': 1e-10,
                'parallel-iters': 100   # random datasets for parallel analysis
            },

            # Clustering
            'clustering': {
                'k': 3,
                'seed': 123,
                'max-iters': 100,
                'linkage': 'complete',
                'wss-max-k': 10         # largest k on the elbow curve
            },

            # Discretization
            'discretize': {
                'n-bins': 3,
                'labels': None          # low/medium/high for 3 bins, else bin1..binN
            },

            # Association rules
            'rules': {
                'min-support': 0.1,
                'min-confidence': 0.8,
                'max-len': None
            },

            # Interpretation
            'interpretation': {
                'top-n': 2
            },

            # Logging
            'logging': {
                'level': 'info'
            }
        }

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        # Make a copy
        config = deepcopy(config)

        # Helper function for deep update
        def deep_update(d, u):
            for k, v in u.items():
                if isinstance(v, dict) and k in d and isinstance(d[k], dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = deepcopy(v)
            return d

        # Apply overrides
        return deep_update(config, overrides)

    def _coerce_values(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Convert loaded values to the types the pipeline expects.

        Values read from YAML or JSON files may arrive as strings.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        config['data']['categorical-columns'] = to_list(config['data']['categorical-columns']) or []

        for key in ('n-comps', 'parallel-iters'):
            config['pca'][key] = to_int(config['pca'][key])
        config['pca']['tolerance'] = to_float(config['pca']['tolerance'])

        for key in ('k', 'seed', 'max-iters', 'wss-max-k'):
            config['clustering'][key] = to_int(config['clustering'][key])
        config['clustering']['linkage'] = str(config['clustering']['linkage']).lower()

        config['discretize']['n-bins'] = to_int(config['discretize']['n-bins'])
        config['discretize']['labels'] = to_list(config['discretize']['labels'])

        config['rules']['min-support'] = to_float(config['rules']['min-support'])
        config['rules']['min-confidence'] = to_float(config['rules']['min-confidence'])
        config['rules']['max-len'] = to_int(config['rules']['max-len'])

        config['interpretation']['top-n'] = to_int(config['interpretation']['top-n'])
        config['logging']['level'] = str(config['logging']['level']).lower()

        return config

    def _validate(self, config: Dict[str, Any]) -> None:
        """
        Reject configuration values no stage could use.

        Args:
            config: Configuration to check
        """
        for path in ('pca.n-comps', 'clustering.k', 'clustering.seed',
                     'clustering.max-iters', 'discretize.n-bins',
                     'rules.min-support', 'rules.min-confidence'):
            section, key = path.split('.')
            if config[section][key] is None:
                raise ValueError(f"Invalid value for {path}")

        if config['clustering']['linkage'] not in LINKAGE_METHODS:
            raise ValueError(f"Unknown linkage method: {config['clustering']['linkage']}")

        if config['logging']['level'] not in LOG_LEVELS:
            raise ValueError(f"Unknown logging level: {config['logging']['level']}")

        labels = config['discretize']['labels']
        if labels is not None and len(labels) != config['discretize']['n-bins']:
            raise ValueError(
                f"Expected {config['discretize']['n-bins']} bin labels, got {len(labels)}"
            )

        for key in ('min-support', 'min-confidence'):
            if not 0.0 < config['rules'][key] <= 1.0:
                raise ValueError(f"rules.{key} must be in (0, 1]")

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        # Split path into components
        components = path.split('.')

        # Start with full configuration
        value = self._config

        # Traverse path
        for component in components:
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        # Split path into components
        components = path.split('.')

        # Start with full configuration
        config = self._config

        # Traverse path
        for component in components[:-1]:
            if component not in config:
                config[component] = {}

            config = config[component]

        # Set value
        config[components[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Configuration dictionary
        """
        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a file.

        Args:
            filepath: Path to save configuration
        """
        # Determine file format from extension
        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Load configuration from a file.

        Args:
            filepath: Path to load configuration from
        """
        # Apply overrides
        self.load_config(_read_config_file(filepath))
