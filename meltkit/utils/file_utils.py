"""File helpers"""

import gzip
import json
import yaml
from pathlib import Path
from typing import Union


def read_file(file_path: Union[str, Path]) -> str:
    """Read a text file, gzip-compressed or not"""
    file_path = Path(file_path)

    if file_path.suffix == '.gz':
        with gzip.open(file_path, 'rt') as f:
            return f.read()
    else:
        with open(file_path, 'r') as f:
            return f.read()


def write_file(content: str, file_path: Union[str, Path]):
    """Write a text file, creating parent directories"""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, 'w') as f:
        f.write(content)


def load_config(config_file: Union[str, Path]) -> dict:
    """Load a JSON or YAML configuration file"""
    config_file = Path(config_file)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")
    content = read_file(config_file)

    if config_file.suffix in ['.yaml', '.yml']:
        return yaml.safe_load(content) or {}
    elif config_file.suffix == '.json':
        return json.loads(content)
    else:
        raise ValueError(f"Unsupported configuration format: {config_file.suffix}")


def save_config(config: dict, config_file: Union[str, Path]):
    """Save a configuration as JSON or YAML, chosen by extension"""
    config_file = Path(config_file)

    if config_file.suffix in ['.yaml', '.yml']:
        content = yaml.dump(config, default_flow_style=False, allow_unicode=True, sort_keys=False)
    elif config_file.suffix == '.json':
        content = json.dumps(config, indent=2, ensure_ascii=False)
    else:
        raise ValueError(f"Unsupported configuration format: {config_file.suffix}")

    write_file(content, config_file)
